"""Badge definitions seeded into a fresh database."""

DEFAULT_BADGES = [
    {
        "slug": "green-software-practitioner",
        "name": "Green Software Practitioner",
        "description": "Foundational knowledge of building, maintaining and running green software.",
        "long_description": (
            "Awarded to people who completed the Green Software for Practitioners "
            "course and its assessment."
        ),
        "badge_label": "Practitioner",
        "hero_description": "Build software that is carbon efficient, energy efficient and carbon aware.",
        "about_paragraphs": [
            "The course covers the principles of green software engineering.",
            "Holders can reason about the carbon footprint of the software they ship.",
        ],
        "what_youll_learn": [
            "Carbon efficiency",
            "Energy efficiency",
            "Carbon awareness",
            "Hardware efficiency",
            "Measurement",
            "Climate commitments",
        ],
        "duration": "2-3 hours",
        "cost": "Free",
        "earning_criteria": ["Complete every course module", "Pass the final assessment"],
        "template": "certificate-preview.html",
        "primary_cta_text": "Take the course",
        "primary_cta_url": "https://learn.greensoftware.foundation/",
    },
    {
        "slug": "sustainable-cloud-specialist",
        "name": "Sustainable Cloud Specialist",
        "description": "Applies green software principles to cloud architecture and operations.",
        "badge_label": "Specialist",
        "about_paragraphs": [],
        "what_youll_learn": [],
        "earning_criteria": ["Complete the Sustainable Cloud Specialist course"],
        "template": "certificate-preview.html",
    },
]
