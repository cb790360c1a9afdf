"""
Resume Builder Service

PURPOSE:
Draft a resume for a target role (premium) and score it for ATS screening.

HOW IT WORKS:
1. Ask the AI provider for the four sections as JSON (summary, experience,
   skills, education) when ``ai_enhancement`` is on
2. Any section the AI leaves empty, or all of them when AI is off or
   failing, is built from the templates below
3. Assemble the resume text and score it with ``score_resume``
4. Store the result in ``ai_resumes``
"""

import logging
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pymongo import DESCENDING
from pymongo.collection import Collection

from hireall.core.auth import AuthenticatedUser
from hireall.core.errors import ApiError, ErrorCode, ForbiddenError, NotFoundError
from hireall.db.mongodb import get_collection, now_ms
from hireall.schemas.schemas import CareerLevel, ResumeRequest
from hireall.services.ai_client import get_ai_client
from hireall.services.mongo_service import paginate, to_object_id

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5

LEVEL_WORDS = {
    CareerLevel.entry: "Motivated",
    CareerLevel.mid: "Results-driven",
    CareerLevel.senior: "Experienced",
    CareerLevel.executive: "Accomplished",
}

INDUSTRY_FOCUS = {
    "technology": "software development",
    "healthcare": "patient care",
    "finance": "financial analysis",
    "marketing": "brand development",
}

INDUSTRY_SKILLS = {
    "technology": ["JavaScript", "Python", "React", "Node.js", "AWS", "Docker", "Git", "SQL"],
    "healthcare": ["Patient Care", "Medical Terminology", "HIPAA Compliance", "Electronic Health Records"],
    "finance": ["Financial Analysis", "Excel", "QuickBooks", "Risk Assessment", "Budget Management"],
    "marketing": ["Digital Marketing", "SEO/SEM", "Content Strategy", "Analytics", "Social Media"],
}

ACTION_VERBS = {
    "achieved", "built", "created", "delivered", "designed", "developed", "directed",
    "drove", "executed", "implemented", "improved", "increased", "launched", "led",
    "managed", "mentored", "optimized", "oversaw", "reduced", "streamlined",
    "transformed", "collaborated", "contributed", "analyzed", "automated",
}

SECTION_PATTERNS = {
    "summary": ("summary", "objective", "profile", "about"),
    "experience": ("experience", "work history", "employment"),
    "education": ("education", "degree", "university", "college"),
    "skills": ("skills", "technologies", "proficiencies", "expertise"),
}
CONTACT_MARKERS = ("email", "phone", "@")
ALL_SECTIONS = ["contact", *SECTION_PATTERNS]

_QUANTIFIED = re.compile(r"\d+(?:\.\d+)?\s*(?:%|percent\b|x\b|k\b|m\b)|[£$€]\s?\d[\d,]*", re.IGNORECASE)
_WORD = re.compile(r"[a-z0-9][a-z0-9.+#-]*")
_BLANK_LINES = re.compile(r"\n{3,}")


# ============================================================
# TEMPLATE SECTIONS
# ============================================================

def build_summary(job_title: str, level: CareerLevel, industry: str) -> str:
    focus = INDUSTRY_FOCUS.get(industry, INDUSTRY_FOCUS["technology"])
    return (
        "PROFESSIONAL SUMMARY\n"
        f"{LEVEL_WORDS[level]} professional with expertise in {focus}. "
        f"Seeking a {job_title} position to apply my skills and experience to drive organizational success."
    )


def build_experience_section(experience: str, level: CareerLevel) -> str:
    verb = "Led" if level in (CareerLevel.senior, CareerLevel.executive) else "Developed"
    return (
        "PROFESSIONAL EXPERIENCE\n"
        f"{verb} key initiatives that resulted in measurable improvements.\n\n"
        "- Collaborated with cross-functional teams to deliver projects on time and within budget\n"
        "- Implemented solutions to complex business challenges\n\n"
        f"{experience}"
    )


def build_skills_section(skills: List[str], industry: str) -> str:
    defaults = INDUSTRY_SKILLS.get(industry, INDUSTRY_SKILLS["technology"])
    combined = list(dict.fromkeys([*skills, *defaults]))
    return (
        "TECHNICAL SKILLS\n"
        f"{' | '.join(combined)}\n\n"
        "SOFT SKILLS\n"
        "- Communication and Presentation\n"
        "- Problem Solving and Critical Thinking\n"
        "- Team Collaboration and Leadership"
    )


def build_education_section(education: str) -> str:
    degree = education or "- Bachelor's Degree in relevant field"
    return f"EDUCATION\n{degree}\n- Additional certifications and professional development"


def build_template_sections(data: ResumeRequest) -> Dict[str, str]:
    return {
        "summary": build_summary(data.job_title, data.level, data.industry),
        "experience": build_experience_section(data.experience, data.level),
        "skills": build_skills_section(data.skills, data.industry),
        "education": build_education_section(data.education),
    }


def assemble_resume(sections: Dict[str, str], include_objective: bool) -> str:
    parts = []
    if include_objective:
        parts.append(
            "OBJECTIVE\nTo obtain a challenging position where I can utilize my skills "
            "and experience to contribute to company growth."
        )
    parts.extend(sections[key] for key in ("summary", "experience", "skills", "education"))
    return _BLANK_LINES.sub("\n\n", "\n\n".join(parts)).strip()


# ============================================================
# ATS SCORING
# ============================================================

def find_sections(text: str) -> List[str]:
    """Sections present in ``text``; headers must sit on their own line."""
    lower = text.lower()
    found = ["contact"] if any(marker in lower for marker in CONTACT_MARKERS) else []
    for section, patterns in SECTION_PATTERNS.items():
        for pattern in patterns:
            header = rf"(^|\n)\s*(?:[a-z]+\s+)?{re.escape(pattern)}\b[:\s]*(\n|$)"
            if re.search(header, lower):
                found.append(section)
                break
    return found


def _target_keywords(target_role: str, industry: str, skills: List[str]) -> List[str]:
    role_words = [w for w in _WORD.findall(target_role.lower()) if len(w) > 2]
    defaults = [s.lower() for s in INDUSTRY_SKILLS.get(industry, INDUSTRY_SKILLS["technology"])]
    return list(dict.fromkeys([*(s.lower() for s in skills), *defaults, *role_words]))


def _tiered(value: float, tiers) -> int:
    for threshold, points in tiers:
        if value >= threshold:
            return points
    return tiers[-1][1]


def score_resume(content: str, target_role: str = "", industry: str = "technology",
                 skills: Optional[List[str]] = None) -> dict:
    """
    Weighted ATS score (0-100) with a per-category breakdown.

    Weights: keywords 25%, content 20%, impact 20%, structure 15%,
    formatting 10%, readability 10%.
    """
    text = content.strip()
    if len(text) < 50:
        message = "Content too short for analysis"
        return {
            "score": 0,
            "breakdown": {k: 0 for k in ("structure", "content", "keywords", "formatting", "readability", "impact")},
            "matched_keywords": [],
            "missing_keywords": [],
            "sections_found": [],
            "suggestions": [message],
        }

    lower = text.lower()
    words = _WORD.findall(lower)
    sections = find_sections(text)

    targets = _target_keywords(target_role, industry, skills or [])
    matched = [k for k in targets if k in lower]
    missing = [k for k in targets if k not in lower]

    action_verbs = sum(1 for w in words if w in ACTION_VERBS)
    quantified = len(_QUANTIFIED.findall(text))
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    headers = sum(1 for line in lines if line.isupper() and len(line) > 3)
    sentences = [s for s in re.split(r"[.!?\n]+", text) if s.strip()]
    words_per_sentence = len(words) / len(sentences) if sentences else 0

    breakdown = {
        "structure": round(len(sections) / len(ALL_SECTIONS) * 100),
        "content": _tiered(action_verbs, [(10, 100), (5, 70), (2, 40), (0, 10)]),
        "keywords": round(len(matched) / len(targets) * 100) if targets else 50,
        "formatting": _tiered(headers, [(3, 100), (1, 60), (0, 30)]),
        "readability": 100 if 8 <= words_per_sentence <= 20 else 70 if 5 <= words_per_sentence <= 25 else 40,
        "impact": _tiered(quantified, [(3, 100), (1, 60), (0, 20)]),
    }
    score = round(
        breakdown["structure"] * 0.15
        + breakdown["content"] * 0.20
        + breakdown["keywords"] * 0.25
        + breakdown["formatting"] * 0.10
        + breakdown["readability"] * 0.10
        + breakdown["impact"] * 0.20
    )

    suggestions = [f"Add a {section} section" for section in ALL_SECTIONS if section not in sections]
    if breakdown["impact"] < 60:
        suggestions.append("Quantify achievements with numbers, percentages or amounts")
    if breakdown["content"] < 70:
        suggestions.append("Start bullet points with strong action verbs")
    if breakdown["keywords"] < 60 and missing:
        suggestions.append(f"Work in missing keywords: {', '.join(missing[:5])}")

    return {
        "score": max(0, min(100, score)),
        "breakdown": breakdown,
        "matched_keywords": matched,
        "missing_keywords": missing,
        "sections_found": sections,
        "suggestions": suggestions[:MAX_SUGGESTIONS],
    }


# ============================================================
# AI DRAFT
# ============================================================

RESUME_PROMPT = """You are an expert resume writer.
Write resume sections for the candidate. Use plain text with an UPPERCASE
header on the first line of each section and strong action verbs.
Return ONLY valid JSON in this format:
{"summary": "string", "experience": "string", "skills": "string", "education": "string"}"""


def build_resume_prompt(data: ResumeRequest) -> str:
    parts = [
        f"Target role: {data.job_title}",
        f"Career level: {data.level.value}",
        f"Industry: {data.industry}",
        f"Style: {data.style.value}",
        f"Experience:\n{data.experience}",
    ]
    if data.skills:
        parts.append(f"Skills: {', '.join(data.skills)}")
    if data.education:
        parts.append(f"Education:\n{data.education}")
    if data.ats_optimization:
        parts.append("Optimize wording for applicant tracking systems.")
    return "\n\n".join(parts)


def _ai_sections(data: ResumeRequest) -> Dict[str, str]:
    raw = get_ai_client().complete_json(RESUME_PROMPT, build_resume_prompt(data), max_tokens=2000)
    if not isinstance(raw, dict):
        raise ValueError("resume reply is not an object")
    return {key: str(raw.get(key) or "").replace("\r\n", "\n").strip()
            for key in ("summary", "experience", "skills", "education")}


class ResumeBuilderService:
    def __init__(self):
        self.collection: Collection = get_collection("ai_resumes")

    def generate(self, user: AuthenticatedUser, data: ResumeRequest) -> dict:
        if not user.is_premium:
            raise ForbiddenError(
                "Premium subscription required for AI resume generation",
                code=ErrorCode.PREMIUM_REQUIRED,
            )

        sections = build_template_sections(data)
        source = "template"
        if data.ai_enhancement:
            try:
                drafted = _ai_sections(data)
            except (ApiError, ValueError) as e:
                logger.warning("AI resume draft failed (%s), using template", e)
            else:
                # Keep the template for anything the model left blank
                sections.update({k: v for k, v in drafted.items() if v})
                source = "ai"

        content = assemble_resume(sections, data.include_objective)
        ats = score_resume(content, data.job_title, data.industry, data.skills)

        result = {
            "content": content,
            "sections": sections,
            "ats_score": ats["score"],
            "breakdown": ats["breakdown"],
            "keywords": ats["matched_keywords"],
            "suggestions": ats["suggestions"],
            "word_count": len(content.split()),
            "source": source,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        }
        inserted = self.collection.insert_one({
            **result,
            "user_id": user.uid,
            "job_title": data.job_title,
            "industry": data.industry,
            "level": data.level.value,
            "style": data.style.value,
            "skills": data.skills,
            "created_at": now_ms(),
        })
        logger.info("Resume (%s) generated for %s, ATS %d", source, user.uid, ats["score"])
        return {"id": str(inserted.inserted_id), **result}

    def list(self, user_id: str, page: int, limit: int) -> dict:
        result = paginate(
            self.collection, {"user_id": user_id}, page, limit, sort=[("created_at", DESCENDING)]
        )
        result["resumes"] = result.pop("items")
        return result

    def delete(self, resume_id: str, user: AuthenticatedUser) -> dict:
        doc = self.collection.find_one({"_id": to_object_id(resume_id, "Resume")})
        if not doc:
            raise NotFoundError("Resume not found")
        if doc.get("user_id") != user.uid and not user.is_admin:
            raise ForbiddenError("You do not have access to this resume")
        self.collection.delete_one({"_id": doc["_id"]})
        return {"id": resume_id}
