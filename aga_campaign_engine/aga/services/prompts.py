"""
Built-in prompts and the personalization strategy catalog.

Standard mode always uses DEFAULT_STRATEGY with its two prompts. Power-user
mode may pick any catalog entry or "custom".
"""
from dataclasses import dataclass
from typing import Dict, List


# ─────────────────────────────────────────────────────────────
# FIXED TASK / GUIDELINES / EXAMPLE
# ─────────────────────────────────────────────────────────────

DEFAULT_PROMPT_TASK = (
    "Create a personalized icebreaker sentence based on the provided company information."
)

DEFAULT_PROMPT_GUIDELINES = (
    "• Use a conversational tone that sounds human and natural\n"
    "• Keep it short — maximum 25 words\n"
    "• Write at a grade 6 reading level using simple language"
)

DEFAULT_PROMPT_EXAMPLE = (
    "Instead of: \"I appreciate how Heaven's Pets combines heartfelt, personalized pet "
    "cremation services with thoughtful keepsakes, truly honoring each pet's unique memory.\"\n\n"
    "Write: \"I like how Heaven's Pets gives loving pet cremation services and keepsakes "
    "that honor each pet.\""
)


# ─────────────────────────────────────────────────────────────
# RESEARCH PROMPTS
# ─────────────────────────────────────────────────────────────

ACHIEVEMENTS_RESEARCH_PROMPT = """You are a research assistant that finds recent company achievements and milestones for personalized cold outreach. Focus on the most current accomplishments, announcements, and recognition from the past 6 months that demonstrate momentum and success.

Research this lead and find recent achievements for personalized cold outreach. Focus on finding:
- Recent awards, certifications, or industry recognition (last 6 months)
- New funding rounds, investments, or financial milestones
- Major partnerships, acquisitions, or strategic alliances
- Product launches, feature releases, or service expansions
- Team growth, new executive hires, or company expansions
- Media coverage or press mentions for recent accomplishments

If no recent achievements are available, focus on:
- Company history and establishment date
- Overall business growth or stability indicators
- Industry position or market presence
- Core business developments or service evolution
- General company trajectory and business model

# Output Format
Company Overview: [Brief description of what they do]
Recent Achievement: [Most impressive recent accomplishment OR notable company milestone/background]
Latest News: [Secondary recent development OR general business strength/position]
Summary: [1 sentence about their recent momentum OR their established market position and business focus]"""

NEWS_RESEARCH_PROMPT = """You are a research assistant that finds the latest news about a company for personalized cold outreach. Only use sources from the past 3 months.

Research this lead and find:
- Press releases and announcements
- Articles or interviews featuring the company or its leaders
- Events, webinars or conferences the company took part in
- Blog posts or public updates from the company

If nothing recent is available, describe what the company does and who it serves.

# Output Format
Company Overview: [Brief description of what they do]
Latest News: [Most relevant recent news item, with its approximate date]
Summary: [1 sentence about why this news matters to the company]"""

EXPERTISE_RESEARCH_PROMPT = """You are a research assistant that describes a company's expertise and way of working for personalized cold outreach.

Research this lead and find:
- The core services or products and who they are built for
- What customers praise in reviews or testimonials
- Specialties, certifications or niches the company is known for
- How the company describes its own approach or values

# Output Format
Company Overview: [Brief description of what they do]
Expertise: [The clearest strength or specialty]
Customer View: [What customers appreciate most, if available]
Summary: [1 sentence about what sets the company apart]"""


# ─────────────────────────────────────────────────────────────
# PERSONALIZATION PROMPTS
# ─────────────────────────────────────────────────────────────

_PERSONALIZATION_RULES = """• Use a conversational tone that sounds human and natural
• Keep it short — maximum 25 words
• Write at a grade 6 reading level using simple language
• Do not use em dashes (—) or complex punctuation
• Only write in English
• Do not ask questions or request meetings
• Do not guess, exaggerate, or invent information — only use the data provided
• Paraphrase information rather than copying sentences directly"""

_PERSONALIZATION_OUTPUT = """## Output Format:
Return only a JSON object with the personalized sentence:

{
"personalized_sentence": ""
}

If insufficient information is available to create a meaningful personalized sentence, return an empty string.

IMPORTANT: If you cannot generate a message, return an empty string."""

ACHIEVEMENTS_PERSONALIZATION_PROMPT = f"""# Task
Create a personalized icebreaker sentence based on the provided company information. This will be the opening line of a cold outreach email.

## Main focus
Focus on complimenting their services, achievements, or notable business aspects using simple language. If achievement data isn't available: Use research information to comment on their service quality, business approach, or industry expertise in simple terms

{_PERSONALIZATION_RULES}

## Example:
{DEFAULT_PROMPT_EXAMPLE}

{_PERSONALIZATION_OUTPUT}"""

NEWS_PERSONALIZATION_PROMPT = f"""# Task
Create a personalized icebreaker sentence that mentions a recent piece of news about the company. This will be the opening line of a cold outreach email.

## Main focus
Refer to the news item briefly and say something positive about it. If there is no recent news, comment on what the company does well.

{_PERSONALIZATION_RULES}

{_PERSONALIZATION_OUTPUT}"""

EXPERTISE_PERSONALIZATION_PROMPT = f"""# Task
Create a personalized icebreaker sentence about the company's expertise or the way it serves its customers. This will be the opening line of a cold outreach email.

## Main focus
Compliment one clear strength or specialty. Prefer what customers say about the company over what the company says about itself.

{_PERSONALIZATION_RULES}

{_PERSONALIZATION_OUTPUT}"""


# ─────────────────────────────────────────────────────────────
# STRATEGY CATALOG
# ─────────────────────────────────────────────────────────────

CUSTOM_STRATEGY = "custom"
DEFAULT_STRATEGY = "company-achievements"


@dataclass(frozen=True)
class Strategy:
    key: str
    label: str
    personalization_prompt: str
    research_prompt: str


STRATEGIES: Dict[str, Strategy] = {
    "company-achievements": Strategy(
        key="company-achievements",
        label="Company Achievements",
        personalization_prompt=ACHIEVEMENTS_PERSONALIZATION_PROMPT,
        research_prompt=ACHIEVEMENTS_RESEARCH_PROMPT,
    ),
    "recent-news": Strategy(
        key="recent-news",
        label="Recent News",
        personalization_prompt=NEWS_PERSONALIZATION_PROMPT,
        research_prompt=NEWS_RESEARCH_PROMPT,
    ),
    "industry-expertise": Strategy(
        key="industry-expertise",
        label="Industry Expertise",
        personalization_prompt=EXPERTISE_PERSONALIZATION_PROMPT,
        research_prompt=EXPERTISE_RESEARCH_PROMPT,
    ),
}


def strategy_keys() -> List[str]:
    return list(STRATEGIES) + [CUSTOM_STRATEGY]


def get_strategy(key: str) -> Strategy:
    try:
        return STRATEGIES[key]
    except KeyError:
        raise ValueError(f"Unknown personalization strategy: {key}")
