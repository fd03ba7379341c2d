"""
Prompt templates for the language model calls.

Three prompts, each answering one narrow question about a marketplace post:
- is it a physical product worth reselling (YES / NO)
- is the title specific enough to search sold listings (SUFFICIENT / name / TOO_VAGUE)
- what product is in the photo
"""

# Sentinels the title prompt may answer with instead of a product name
TITLE_SUFFICIENT = "SUFFICIENT"
TITLE_TOO_VAGUE = "TOO_VAGUE"

RESELLABLE_EXAMPLES = [
    ("iPhone 15 Pro Max", "YES", "physical electronics"),
    ("Canon camera", "YES", "physical item"),
    ("I need employees", "NO", "hiring/services"),
    ("Hair removal service", "NO", "service"),
    ("Missing dog", "NO", "not for sale"),
    ("Room for rent", "NO", "real estate/rental"),
    ("Car repair", "NO", "service"),
    ("Tutoring available", "NO", "service"),
    ("Nike shoes", "YES", "physical item"),
]


def get_resellable_prompt(title: str) -> str:
    examples = "\n".join(
        f'- "{example}" -> {answer} ({why})'
        for example, answer, why in RESELLABLE_EXAMPLES
    )
    return f"""Analyze this Facebook Marketplace listing title: "{title}"

Is this a PHYSICAL PRODUCT that could be resold on eBay?

RESPOND WITH ONLY: YES or NO

Examples:
{examples}

Title: "{title}\""""


def get_enhance_title_prompt(title: str) -> str:
    return f"""You are helping with product identification for reselling. Given this Facebook Marketplace title: "{title}"

If this title is specific enough to find exact product matches (like "iPhone 15 Pro Max 256GB"), respond with: {TITLE_SUFFICIENT}

If this title is too vague but you can confidently guess the specific product (like "Yeti Mic" -> "Blue Yeti USB Microphone"), respond with the enhanced product name.

If this title is too vague and you cannot confidently determine the specific product, respond with: {TITLE_TOO_VAGUE}

Title to analyze: "{title}\""""


IMAGE_ANALYSIS_PROMPT = (
    "Analyze this product image and provide a specific product name that would be "
    "suitable for searching sold listings on eBay. Include brand, model, and key "
    "specifications if visible. Be specific and concise."
)
