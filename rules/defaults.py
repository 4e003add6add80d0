"""
Built-in rule data.

The local tier answers questions about the demo user's own holdings and
is evaluated before the configurable general tier. It never offers
suggestion buttons.
"""

from pathlib import Path


BUNDLED_RULES_PATH = Path(__file__).parent / "data" / "canned_responses.yaml"


LOCAL_RULES = [
    {
        "id": "local-recent-performance",
        "keywords": {
            "any": [
                "6 months", "past six months", "half year", "last six months",
                "recent performance", "recent", "short term return",
            ]
        },
        "response": (
            "Your investments have shown a **+8.5% return** over the past 6 months "
            "(as of June 26, 2025). This includes a strong performance from your "
            "tech sector holdings."
        ),
        "description": "Six-month portfolio performance",
    },
    {
        "id": "local-since-inception",
        "keywords": {
            "any": [
                "investments", "investment", "inception", "performed", "performance",
                "return", "since", "initial", "original investment", "start date",
                "commencement", "from start", "since day one", "total return",
                "overall return", "portfolio return",
            ]
        },
        "response": (
            "Since inception (your initial investment date of January 15, 2020), "
            "your overall portfolio has achieved a **+27.3% return**."
        ),
        "description": "Performance since first investment",
    },
    {
        "id": "local-fund-charges",
        "keywords": {"any": ["fund charge", "percentage", "aggregated", "fees", "cost"]},
        "response": (
            "Your current aggregated fund charge percentage across all your holdings "
            "is **0.75%** per annum. This includes all management fees and "
            "operational costs."
        ),
        "description": "Aggregated fund charges",
    },
    {
        "id": "local-isa-subscription",
        "keywords": {
            "any": [
                "subscription to isa", "subscription", "new", "top up",
                "pay into", "add money",
            ]
        },
        "response": (
            "Yes, you can make a new subscription to your ISA. You have **£5,000** "
            "remaining of your **£20,000** allowance for the current tax year (which "
            "ends April 5, 2026). You can initiate a new subscription via the "
            "'Investments' section of your online portal."
        ),
        "description": "New ISA subscription",
    },
]
