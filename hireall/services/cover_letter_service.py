"""
Cover Letter Service

PURPOSE:
Draft a cover letter for a job and score how well it would pass an
applicant tracking system (ATS).

HOW IT WORKS:
1. Pull ATS keywords out of the job description (common list + the
   user's own skills that the description mentions)
2. Optionally pick "research insights" from the description
3. Draft the letter with the AI provider; if AI is not configured or the
   circuit is open, build it from the template instead
4. Score the letter and suggest improvements
5. Store the result in ``cover_letters`` (counts towards the monthly
   ``ai_generations_per_month`` limit)
"""

import logging
import re
from datetime import datetime, timezone
from typing import List, Optional

from hireall.core.auth import AuthenticatedUser
from hireall.core.errors import ApiError, ErrorCode, ForbiddenError, ServiceUnavailableError
from hireall.db.mongodb import get_collection, now_ms
from hireall.schemas.schemas import CoverLetterLength, CoverLetterRequest, CoverLetterTone
from hireall.services.ai_client import get_ai_client
from hireall.services.usage_service import UsageService

logger = logging.getLogger(__name__)

MAX_KEYWORDS = 12

COMMON_KEYWORDS = [
    "leadership", "communication", "teamwork", "problem-solving", "analytical",
    "project management", "collaboration", "initiative", "adaptability", "creativity",
    "javascript", "python", "react", "node.js", "aws", "docker", "kubernetes",
    "agile", "scrum", "git", "sql", "nosql", "mongodb", "postgresql",
]

INSIGHT_KEYWORDS = [
    "mission", "culture", "innovation", "diversity", "inclusion", "customers",
    "growth", "expansion", "sustainability", "impact", "product", "platform",
    "team", "technology", "research", "market", "global",
]

OPENINGS = {
    CoverLetterTone.professional: "Dear Hiring Manager,",
    CoverLetterTone.friendly: "Hello Team,",
    CoverLetterTone.enthusiastic: "Excited to apply!",
    CoverLetterTone.formal: "To the Hiring Committee,",
}

DEFAULT_EXPERIENCE = (
    "With my background in technology and proven track record of delivering "
    "results, I believe I would be a valuable addition to your team."
)

_SENTENCE_SPLIT = re.compile(r"[.!?\n]")
_WHITESPACE = re.compile(r"\s+")


def _sentences(text: str) -> List[str]:
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def word_count(content: str) -> int:
    return len(content.split())


# ============================================================
# KEYWORDS AND RESEARCH
# ============================================================

def extract_keywords(job_description: str, user_skills: List[str]) -> List[str]:
    """
    >>> extract_keywords("We use Python and AWS. Kotlin a plus.", ["Kotlin"])
    ['python', 'aws', 'kotlin']
    """
    description = job_description.lower()
    found = [k for k in COMMON_KEYWORDS if k in description]
    matching_skills = [s.lower() for s in user_skills if s.lower() in description]
    return list(dict.fromkeys(found + matching_skills))[:MAX_KEYWORDS]


def analyze_company_insights(job_description: str, company_name: str) -> List[str]:
    """Up to three description sentences that say something about the company."""
    sentences = _sentences(job_description)
    insights = [s for s in sentences if any(k in s.lower() for k in INSIGHT_KEYWORDS)]
    if not insights and sentences:
        insights = [sentences[0]]

    cleaned = []
    for insight in insights[:3]:
        insight = _WHITESPACE.sub(" ", insight)
        if not insight.endswith("."):
            insight += "."
        insight = insight[0].upper() + insight[1:]
        cleaned.append(re.sub("company", company_name, insight, flags=re.IGNORECASE))
    return cleaned


# ============================================================
# TEMPLATE DRAFT
# ============================================================

def build_closing_statement(length: CoverLetterLength, keywords: List[str], company_name: str) -> str:
    if length == CoverLetterLength.concise:
        return "Thank you for your consideration. I look forward to discussing this opportunity soon."
    if length == CoverLetterLength.detailed:
        primary = keywords[0].lower() if keywords else "delivering impactful solutions"
        return (
            f"I would love to walk you through my experience in {primary} "
            f"and share how it can accelerate {company_name}'s goals."
        )
    return (
        "I would welcome the opportunity to discuss how my experience and skills "
        "align with your needs. Thank you for your time and consideration."
    )


def build_template_letter(data: CoverLetterRequest, keywords: List[str], insights: List[str]) -> str:
    company = data.company_name
    opening = OPENINGS.get(data.tone, OPENINGS[CoverLetterTone.professional])

    keyword_paragraph = ""
    if keywords:
        keyword_paragraph = (
            f"My experience in {', '.join(keywords[:3])} aligns perfectly "
            "with the requirements of this position."
        )

    summary = next((s for s in _sentences(data.job_description) if len(s) > 12), "")
    description_paragraph = ""
    if summary:
        description_paragraph = f"What excites me most about this opportunity is the focus on {summary.lower()}."

    research_paragraph = ""
    if data.deep_research and insights:
        research_paragraph = (
            f"In preparing this application, I explored {company}'s recent initiatives "
            f"and was particularly impressed by {insights[0]}"
        )
        if len(insights) > 1:
            research_paragraph += (
                f" This, along with {insights[1]}, highlights the forward-thinking culture I value."
            )

    additional_insights = ""
    if data.deep_research and len(insights) > 2:
        bullets = "\n".join(f"• {item}" for item in insights[:3])
        additional_insights = f"Key insights from my research into {company}:\n{bullets}"

    skills_paragraph = ""
    if data.skills:
        skills_paragraph = (
            f"My key skills include: {', '.join(data.skills)}. I have applied these skills "
            "in various projects and have consistently achieved positive outcomes."
        )

    lines = [
        opening,
        f"I am writing to express my strong interest in the {data.job_title} position at {company}.",
        data.experience or DEFAULT_EXPERIENCE,
        keyword_paragraph,
        research_paragraph,
        description_paragraph,
        skills_paragraph,
        f"After reviewing the job description, I am particularly excited about the opportunity "
        f"to contribute to {company}'s mission. Your company's focus on innovation and excellence "
        "resonates with my professional values and career goals.",
        additional_insights,
        build_closing_statement(data.length, keywords, company),
        "Sincerely,",
        "[Your Name]",
    ]
    return "\n".join(lines)


# ============================================================
# ATS SCORING
# ============================================================

def calculate_ats_score(
    content: str,
    keywords: List[str],
    job_description: str,
    ats_optimization: bool = False,
    keyword_focus: bool = False,
) -> int:
    """Base 50, keyword and structure bonuses, capped at 100."""
    score = 50
    content_lower = content.lower()
    matches = [k for k in keywords if k.lower() in content_lower]
    score += len(matches) * 5

    words = word_count(content)
    if 150 <= words <= 400:
        score += 10
    elif 100 <= words <= 500:
        score += 5

    if "Dear" in content and "Sincerely" in content:
        score += 10

    if ats_optimization:
        score += min(10, len(matches) * 2)
    if keyword_focus and len(keywords) >= 5:
        score += 5

    description = job_description.lower()
    coverage = [k for k in keywords if k.lower() in description]
    if len(coverage) >= min(5, len(keywords)):
        score += 5

    return min(score, 100)


def generate_improvements(
    content: str,
    keywords: List[str],
    ats_score: int,
    deep_research: bool,
    insights: List[str],
    ats_optimization: bool = False,
    keyword_focus: bool = False,
) -> List[str]:
    improvements = []
    if ats_score < 70:
        improvements.append("Add more keywords from the job description to improve ATS compatibility")
    if "quantifiable" not in content and "numbers" not in content:
        improvements.append("Include specific metrics and quantifiable achievements")
    if len(keywords) < 5:
        improvements.append("Incorporate more relevant skills and keywords")
    if not deep_research and ("company" not in content or "mission" not in content):
        improvements.append("Add more company-specific information to show research")
    if deep_research and len(insights) < 2:
        improvements.append("Expand on specific company initiatives uncovered during research")
    if not keyword_focus:
        improvements.append("Enable keyword focus to emphasize the most relevant skills")
    if not ats_optimization:
        improvements.append("Turn on ATS optimization to better tailor the output for screening systems")

    words = word_count(content)
    if words < 150:
        improvements.append("Consider expanding your cover letter to provide more detail")
    elif words > 500:
        improvements.append("Consider making your cover letter more concise")

    return improvements[:4]


# ============================================================
# AI DRAFT
# ============================================================

COVER_LETTER_PROMPT = """You write concise, specific cover letters.
Write a {length} cover letter in a {tone} tone. Start with a greeting, end with
"Sincerely," followed by "[Your Name]" on its own line.
Work these keywords in naturally where they are true for the candidate: {keywords}.
Return ONLY the letter text, no commentary."""


def _ai_letter(data: CoverLetterRequest, keywords: List[str], insights: List[str]) -> str:
    system_prompt = COVER_LETTER_PROMPT.format(
        length=data.length.value,
        tone=data.tone.value,
        keywords=", ".join(keywords) or "none",
    )
    parts = [
        f"Job title: {data.job_title}",
        f"Company: {data.company_name}",
        f"Job description:\n{data.job_description[:6000]}",
    ]
    if data.skills:
        parts.append(f"Candidate skills: {', '.join(data.skills)}")
    if data.experience:
        parts.append(f"Candidate experience:\n{data.experience}")
    if insights:
        parts.append("Company insights:\n" + "\n".join(insights))
    return get_ai_client().complete(system_prompt, "\n\n".join(parts), max_tokens=900, temperature=0.7).strip()


class CoverLetterService:
    def __init__(self):
        self.collection = get_collection("cover_letters")

    def generate(self, user: AuthenticatedUser, data: CoverLetterRequest) -> dict:
        if not user.is_premium:
            raise ForbiddenError(
                "Premium subscription required for AI cover letter generation",
                code=ErrorCode.PREMIUM_REQUIRED,
            )
        UsageService().check_feature_limit(user.uid, "ai_generations_per_month", is_admin=user.is_admin)

        keywords = extract_keywords(data.job_description, data.skills)
        insights = analyze_company_insights(data.job_description, data.company_name) if data.deep_research else []

        content: Optional[str] = None
        generated_by = "template"
        try:
            content = _ai_letter(data, keywords, insights)
            generated_by = "ai"
        except ServiceUnavailableError as e:
            logger.info("AI draft unavailable (%s), using template", e.message)
        except ApiError as e:
            logger.warning("AI draft failed (%s), using template", e.message)
        if not content:
            content = build_template_letter(data, keywords, insights)
            generated_by = "template"

        ats_score = calculate_ats_score(
            content, keywords, data.job_description,
            ats_optimization=data.ats_optimization, keyword_focus=data.keyword_focus,
        )
        improvements = generate_improvements(
            content, keywords, ats_score, data.deep_research, insights,
            ats_optimization=data.ats_optimization, keyword_focus=data.keyword_focus,
        )

        result = {
            "content": content,
            "ats_score": ats_score,
            "keywords": keywords[:8],
            "improvements": improvements,
            "tone": data.tone.value,
            "word_count": word_count(content),
            "deep_research": data.deep_research,
            "research_insights": insights,
            "source": generated_by,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        }
        self.collection.insert_one({
            **result,
            "user_id": user.uid,
            "job_title": data.job_title,
            "company_name": data.company_name,
            "created_at": now_ms(),
        })
        logger.info("Cover letter (%s) generated for %s, ATS %d", generated_by, user.uid, ats_score)
        return result
