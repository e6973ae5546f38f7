"""badges, people and awards"""

from alembic import op
import sqlalchemy as sa

revision = "0001_award_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("badges"):
        op.create_table(
            "badges",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("slug", sa.String(120), nullable=False, unique=True),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("description", sa.Text),
            sa.Column("long_description", sa.Text),
            sa.Column("badge_label", sa.String(120)),
            sa.Column("hero_description", sa.Text),
            sa.Column("about_paragraphs", sa.JSON),
            sa.Column("what_youll_learn", sa.JSON),
            sa.Column("duration", sa.String(120)),
            sa.Column("cost", sa.String(120)),
            sa.Column("earning_criteria", sa.JSON),
            sa.Column("template", sa.String(255)),
            sa.Column("primary_cta_text", sa.String(255)),
            sa.Column("primary_cta_url", sa.String(1024)),
            sa.Column("secondary_cta_text", sa.String(255)),
            sa.Column("secondary_cta_url", sa.String(1024)),
            sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        )

    if not inspector.has_table("people"):
        op.create_table(
            "people",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("email", sa.String(255), nullable=False),
            sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        )
        op.create_index(
            "ix_people_email_lower",
            "people",
            [sa.text("lower(email)")],
            unique=True,
        )

    if not inspector.has_table("awards"):
        op.create_table(
            "awards",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column(
                "person_id",
                sa.Integer,
                sa.ForeignKey("people.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column(
                "badge_id",
                sa.Integer,
                sa.ForeignKey("badges.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("personalized_description", sa.Text),
            sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
            sa.UniqueConstraint("person_id", "badge_id", name="uq_awards_person_badge"),
        )
        op.create_index("ix_awards_issued_at", "awards", ["issued_at"])


def downgrade() -> None:
    op.drop_index("ix_awards_issued_at", table_name="awards")
    op.drop_table("awards")
    op.drop_index("ix_people_email_lower", table_name="people")
    op.drop_table("people")
    op.drop_table("badges")
