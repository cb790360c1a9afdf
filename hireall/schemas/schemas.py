"""
Pydantic Schemas - Request Validation

All API request bodies, query strings and route params in one file for
simplicity. Bodies accept both snake_case and the extension's camelCase
(``companyName`` / ``company_name``).
"""

import re
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from hireall.utils.url_normalizer import is_valid_url


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def _check_object_id(value: str) -> str:
    if not ObjectId.is_valid(value):
        raise ValueError("Invalid id format")
    return value


ObjectIdStr = Annotated[str, AfterValidator(_check_object_id)]


# ============================================================
# ENUMS
# ============================================================

class ApplicationStatus(str, Enum):
    interested = "interested"
    applied = "applied"
    interviewing = "interviewing"
    offered = "offered"
    rejected = "rejected"
    withdrawn = "withdrawn"


class ContactStatus(str, Enum):
    new = "new"
    read = "read"
    responded = "responded"
    archived = "archived"
    spam = "spam"


class CoverLetterTone(str, Enum):
    professional = "professional"
    friendly = "friendly"
    enthusiastic = "enthusiastic"
    formal = "formal"


class CoverLetterLength(str, Enum):
    concise = "concise"
    standard = "standard"
    detailed = "detailed"


class CareerLevel(str, Enum):
    entry = "entry"
    mid = "mid"
    senior = "senior"
    executive = "executive"


class ResumeStyle(str, Enum):
    modern = "modern"
    traditional = "traditional"
    creative = "creative"
    technical = "technical"


class EmailTemplateCategory(str, Enum):
    marketing = "marketing"
    newsletter = "newsletter"
    onboarding = "onboarding"
    promotional = "promotional"
    announcement = "announcement"


class FeedbackSentiment(str, Enum):
    positive = "positive"
    negative = "negative"


class FeedbackContentType(str, Enum):
    cover_letter = "cover_letter"
    cv_analysis = "cv_analysis"
    resume = "resume"
    interview_prep = "interview_prep"
    other = "other"


# ============================================================
# SHARED QUERY / PARAM SCHEMAS
# ============================================================

class PageQuery(ApiModel):
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)


class JobIdParams(ApiModel):
    job_id: ObjectIdStr


class ApplicationIdParams(ApiModel):
    application_id: ObjectIdStr


class SponsorIdParams(ApiModel):
    sponsor_id: ObjectIdStr


class ContactIdParams(ApiModel):
    contact_id: ObjectIdStr


class AnalysisIdParams(ApiModel):
    analysis_id: ObjectIdStr


class ResumeIdParams(ApiModel):
    resume_id: ObjectIdStr


class TemplateIdParams(ApiModel):
    template_id: ObjectIdStr


class FeedbackIdParams(ApiModel):
    feedback_id: ObjectIdStr


class UserIdParams(ApiModel):
    user_id: str = Field(..., min_length=1, max_length=128)


# ============================================================
# JOB SCHEMAS
# ============================================================

class SalaryRange(ApiModel):
    min: Optional[float] = Field(None, ge=0)
    max: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, max_length=10)

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("salary min cannot exceed max")
        return self


class JobFields(ApiModel):
    """Optional job attributes shared by create and update."""

    description: Optional[str] = Field(None, max_length=50000)
    salary: Optional[str] = Field(None, max_length=200)
    salary_range: Optional[SalaryRange] = None
    skills: Optional[List[str]] = None
    requirements: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    job_type: Optional[str] = Field(None, max_length=100)
    experience_level: Optional[str] = Field(None, max_length=100)
    remote_work: Optional[bool] = None
    company_size: Optional[str] = Field(None, max_length=100)
    industry: Optional[str] = Field(None, max_length=200)
    posted_date: Optional[str] = Field(None, max_length=100)
    application_deadline: Optional[str] = Field(None, max_length=100)
    is_sponsored: Optional[bool] = None
    is_recruitment_agency: Optional[bool] = None
    sponsorship_type: Optional[str] = Field(None, max_length=200)
    date_found: Optional[int] = None


class JobCreate(JobFields):
    title: str = Field(..., min_length=1, max_length=500)
    company: str = Field(..., min_length=1, max_length=500)
    location: str = Field(..., min_length=1, max_length=500)
    url: str = Field(..., min_length=1, max_length=2000)
    user_id: Optional[str] = None
    source: str = Field("extension", max_length=50)

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        if not is_valid_url(v):
            raise ValueError("url must be a valid http(s) URL")
        return v


PROTECTED_JOB_FIELDS = {"_id", "id", "created_at", "createdAt", "user_id", "userId"}


class JobUpdate(JobFields):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    company: Optional[str] = Field(None, min_length=1, max_length=500)
    location: Optional[str] = Field(None, min_length=1, max_length=500)
    url: Optional[str] = Field(None, min_length=1, max_length=2000)
    source: Optional[str] = Field(None, max_length=50)

    @model_validator(mode="before")
    @classmethod
    def reject_protected(cls, data):
        if isinstance(data, dict):
            protected = sorted(PROTECTED_JOB_FIELDS.intersection(data))
            if protected:
                raise ValueError(f"Cannot update protected fields: {', '.join(protected)}")
        return data

    @field_validator("url")
    @classmethod
    def check_url(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_valid_url(v):
            raise ValueError("url must be a valid http(s) URL")
        return v


class JobListQuery(PageQuery):
    user_id: Optional[str] = None


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(ApiModel):
    status: ApplicationStatus = ApplicationStatus.applied
    applied_date: Optional[int] = None
    notes: Optional[str] = Field(None, max_length=5000)


class JobWithApplicationCreate(ApiModel):
    job: JobCreate
    application: ApplicationCreate = Field(default_factory=ApplicationCreate)


class ApplicationUpdate(ApiModel):
    status: Optional[ApplicationStatus] = None
    applied_date: Optional[int] = None
    notes: Optional[str] = Field(None, max_length=5000)
    interview_dates: Optional[List[int]] = None
    follow_up_date: Optional[int] = None
    resume_version_id: Optional[ObjectIdStr] = None

    @model_validator(mode="after")
    def not_empty(self):
        if not self.model_fields_set:
            raise ValueError("No fields to update")
        return self


class ApplicationListQuery(PageQuery):
    status: Optional[ApplicationStatus] = None


# ============================================================
# SPONSORSHIP SCHEMAS
# ============================================================

class SponsorCheckRequest(ApiModel):
    company: str = Field(..., min_length=1, max_length=300)
    city: Optional[str] = Field(None, max_length=200)
    location: Optional[str] = Field(None, max_length=200)


class SponsorBatchRequest(ApiModel):
    companies: List[str] = Field(..., min_length=1, max_length=50)


class SponsorListQuery(PageQuery):
    q: Optional[str] = Field(None, max_length=200)
    search: Optional[str] = Field(None, max_length=200)
    industry: Optional[str] = None
    sponsorship_type: Optional[str] = None
    status: Optional[Literal["active", "inactive", "all"]] = None


class SponsorFields(ApiModel):
    city: Optional[str] = Field(None, max_length=200)
    county: Optional[str] = Field(None, max_length=200)
    route: Optional[str] = Field(None, max_length=200)
    type_rating: Optional[str] = Field(None, max_length=200)
    sponsorship_type: Optional[str] = Field(None, max_length=200)
    industry: Optional[str] = Field(None, max_length=200)
    website: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = Field(None, max_length=5000)
    notes: Optional[str] = Field(None, max_length=5000)
    aliases: Optional[List[str]] = Field(None, max_length=10)


class SponsorCreate(SponsorFields):
    name: str = Field(..., min_length=1, max_length=300)
    is_active: bool = True


class SponsorUpdate(SponsorFields):
    name: Optional[str] = Field(None, min_length=1, max_length=300)
    is_active: Optional[bool] = None


# ============================================================
# SOC CODE SCHEMAS
# ============================================================

class SocMatchRequest(ApiModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = Field(None, max_length=20000)
    keywords: Optional[List[str]] = None
    department: Optional[str] = Field(None, max_length=200)
    seniority: Optional[str] = Field(None, max_length=100)


class SocSearchQuery(ApiModel):
    q: Optional[str] = Field(None, max_length=200)
    code: Optional[str] = Field(None, max_length=20)
    eligibility: Optional[str] = Field(None, max_length=100)
    limit: int = Field(20, ge=1, le=100)


# ============================================================
# CONTACT SCHEMAS
# ============================================================

class ContactCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    subject: Optional[str] = Field(None, max_length=300)
    message: str = Field(..., min_length=1, max_length=5000)
    # Hidden form field; humans leave it empty
    honeypot: Optional[str] = None
    loaded_at: Optional[int] = None
    submitted_at: Optional[int] = None


class ContactListQuery(PageQuery):
    status: Optional[ContactStatus] = None


class ContactUpdate(ApiModel):
    status: Optional[ContactStatus] = None
    response: Optional[str] = Field(None, max_length=10000)


# ============================================================
# ADMIN SCHEMAS
# ============================================================

class UserListQuery(PageQuery):
    search: Optional[str] = Field(None, max_length=200)


class RoleUpdate(ApiModel):
    is_admin: bool


# ============================================================
# AI SCHEMAS
# ============================================================

class CoverLetterRequest(ApiModel):
    job_title: str = Field(..., min_length=1, max_length=300)
    company_name: str = Field(..., min_length=1, max_length=300)
    job_description: str = Field(..., min_length=1, max_length=20000)
    skills: List[str] = Field(default_factory=list)
    experience: Optional[str] = Field(None, max_length=5000)
    tone: CoverLetterTone = CoverLetterTone.professional
    length: CoverLetterLength = CoverLetterLength.standard
    ats_optimization: bool = False
    keyword_focus: bool = False
    deep_research: bool = False


class CvAnalyzeRequest(ApiModel):
    cv_text: str = Field(..., min_length=1, max_length=50000)
    target_role: Optional[str] = Field(None, max_length=200)
    industry: Optional[str] = Field(None, max_length=200)
    job_level: Optional[CareerLevel] = None


class CvAnalysisListQuery(PageQuery):
    limit: int = Field(20, ge=1, le=100)


class CvTemplateFields(ApiModel):
    required_sections: Optional[List[str]] = Field(None, max_length=20)
    recommended_keywords: Optional[List[str]] = Field(None, max_length=100)
    common_skills: Optional[List[str]] = Field(None, max_length=100)
    industry_specific_tips: Optional[List[str]] = Field(None, max_length=30)


class CvTemplateCreate(CvTemplateFields):
    name: str = Field(..., min_length=1, max_length=200)
    industry: str = Field(..., min_length=1, max_length=200)
    job_level: CareerLevel
    is_active: bool = True


class CvTemplateUpdate(CvTemplateFields):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    industry: Optional[str] = Field(None, min_length=1, max_length=200)
    job_level: Optional[CareerLevel] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def not_empty(self):
        if not self.model_fields_set:
            raise ValueError("No fields to update")
        return self


class CvTemplateQuery(ApiModel):
    industry: Optional[str] = Field(None, max_length=200)
    job_level: Optional[CareerLevel] = None
    include_inactive: bool = False


# ============================================================
# RESUME SCHEMAS
# ============================================================

class ResumeVersionUpdate(ApiModel):
    file_name: Optional[str] = Field(None, min_length=1, max_length=255)
    file_url: Optional[str] = Field(None, max_length=2000)
    parsed_content: Optional[str] = Field(None, max_length=50000)

    @model_validator(mode="after")
    def not_empty(self):
        if not self.model_fields_set:
            raise ValueError("No fields to update")
        return self


class ResumeRequest(ApiModel):
    job_title: str = Field(..., min_length=1, max_length=200)
    experience: str = Field(..., min_length=1, max_length=10000)
    skills: List[str] = Field(default_factory=list)
    education: str = Field("", max_length=5000)
    industry: str = Field("technology", max_length=100)
    level: CareerLevel = CareerLevel.mid
    style: ResumeStyle = ResumeStyle.modern
    include_objective: bool = True
    ats_optimization: bool = True
    ai_enhancement: bool = True

    @field_validator("skills", mode="before")
    @classmethod
    def split_skills(cls, v):
        """Accept ``"Python, SQL"`` as well as a list."""
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v


class AiResumeListQuery(PageQuery):
    limit: int = Field(20, ge=1, le=100)


# ============================================================
# EMAIL TEMPLATE SCHEMAS
# ============================================================

class EmailTemplateFields(ApiModel):
    description: Optional[str] = Field(None, max_length=1000)
    html_content: Optional[str] = Field(None, max_length=200000)
    text_content: Optional[str] = Field(None, max_length=50000)
    preview: Optional[str] = Field(None, max_length=500)
    tags: Optional[List[str]] = Field(None, max_length=20)


class EmailTemplateCreate(EmailTemplateFields):
    name: str = Field(..., min_length=1, max_length=200)
    subject: str = Field(..., min_length=1, max_length=300)
    category: EmailTemplateCategory = EmailTemplateCategory.marketing
    active: bool = True

    @model_validator(mode="after")
    def has_body(self):
        if not self.html_content and not self.text_content:
            raise ValueError("Either html_content or text_content is required")
        return self


class EmailTemplateUpdate(EmailTemplateFields):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    subject: Optional[str] = Field(None, min_length=1, max_length=300)
    category: Optional[EmailTemplateCategory] = None
    active: Optional[bool] = None

    @model_validator(mode="after")
    def not_empty(self):
        if not self.model_fields_set:
            raise ValueError("No fields to update")
        return self


class EmailTemplateListQuery(PageQuery):
    category: Optional[EmailTemplateCategory] = None
    active: Optional[bool] = None
    search: Optional[str] = Field(None, max_length=200)


class EmailTemplateRender(ApiModel):
    variables: Dict[str, str] = Field(default_factory=dict)


class EmailListQuery(ApiModel):
    segment: Optional[str] = Field(None, max_length=50)
    active_only: bool = False


# ============================================================
# AI FEEDBACK SCHEMAS
# ============================================================

class AiFeedbackCreate(ApiModel):
    content_type: FeedbackContentType
    sentiment: FeedbackSentiment
    content_id: Optional[str] = Field(None, max_length=128)
    comment: Optional[str] = Field(None, max_length=2000)


class AiFeedbackListQuery(PageQuery):
    content_type: Optional[FeedbackContentType] = None
    sentiment: Optional[FeedbackSentiment] = None


# ============================================================
# USER PROFILE SCHEMAS
# ============================================================

_EMAIL_SHAPE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class AutofillPersonalInfo(ApiModel):
    first_name: str = Field("", max_length=100)
    last_name: str = Field("", max_length=100)
    email: str = Field("", max_length=254)
    phone: str = Field("", max_length=50)
    address: str = Field("", max_length=300)
    city: str = Field("", max_length=100)
    state: str = Field("", max_length=100)
    zip_code: str = Field("", max_length=20)
    country: str = Field("", max_length=100)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = v.lower()
        if v and not _EMAIL_SHAPE.match(v):
            raise ValueError("Invalid email address")
        return v


class AutofillProfessional(ApiModel):
    current_title: str = Field("", max_length=200)
    experience: str = Field("", max_length=5000)
    education: str = Field("", max_length=2000)
    skills: str = Field("", max_length=2000)
    linkedin_url: str = Field("", max_length=500)
    portfolio_url: str = Field("", max_length=500)
    github_url: str = Field("", max_length=500)


class AutofillPreferences(ApiModel):
    salary_expectation: str = Field("", max_length=100)
    available_start_date: str = Field("", max_length=100)
    work_authorization: str = Field("", max_length=200)
    relocate: bool = False
    cover_letter: str = Field("", max_length=10000)


class AutofillProfile(ApiModel):
    """All three sections must be present; their fields default to blank."""

    personal_info: AutofillPersonalInfo
    professional: AutofillProfessional
    preferences: AutofillPreferences
