"""
cvs/models.py -- Domain dataclasses for CV documents.

These are pure data containers with zero logic. Persistence lives in
cvs/store.py; ownership and visibility rules live in cvs/access.py.

A CV's user_id is set once, from the authenticated principal, when the CV is
created. Nothing in the request path can change it afterwards.
"""

from dataclasses import dataclass, field
from typing import Optional

LAYOUTS = ("professional", "modern", "creative")


@dataclass
class BasicDetails:
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    image: Optional[str] = None  # URL or base64 data URI
    intro: Optional[str] = None


@dataclass
class Education:
    degree: str
    institution: str
    percentage: Optional[float] = None
    year: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


@dataclass
class Experience:
    company: str
    position: str
    location: Optional[str] = None
    joining_date: Optional[str] = None
    leaving_date: Optional[str] = None
    ctc: Optional[str] = None
    technologies: list[str] = field(default_factory=list)
    description: Optional[str] = None


@dataclass
class Project:
    title: str
    description: Optional[str] = None
    duration: Optional[str] = None
    team_size: Optional[int] = None
    technologies: list[str] = field(default_factory=list)
    role: Optional[str] = None


@dataclass
class Skill:
    name: str
    proficiency: Optional[float] = None  # percentage, 0..100


@dataclass
class SocialProfile:
    platform: str
    url: str


@dataclass
class CV:
    """A CV document owned by one user.

    is_public opens the document to the unauthenticated share link; every
    other read or write is restricted to the owner.

    id is None before the record is written to the database.
    """

    user_id: int
    basic_details: BasicDetails
    layout: str = "professional"  # one of LAYOUTS
    education: list[Education] = field(default_factory=list)
    experience: list[Experience] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    skills: list[Skill] = field(default_factory=list)
    social_profiles: list[SocialProfile] = field(default_factory=list)
    is_public: bool = False
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, advanced by store on every update
