"""
Predetermined skill catalogue.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from database import Skill, new_id

logger = logging.getLogger("gigboard.skills")

SEARCH_LIMIT = 20

PREDETERMINED_SKILLS = [
    # Development
    "JavaScript", "TypeScript", "Python", "Java", "C#", "C++", "Go", "Rust", "PHP", "Ruby",
    "Swift", "Kotlin", "React", "Vue.js", "Angular", "Node.js", "Django", "Flask", "FastAPI",
    "Spring Boot", "Laravel", "Ruby on Rails", ".NET", "HTML", "CSS", "Tailwind CSS",
    "React Native", "Flutter", "iOS Development", "Android Development",
    # Data
    "SQL", "PostgreSQL", "MySQL", "MongoDB", "Redis", "Data Analysis", "Data Engineering",
    "Machine Learning", "Deep Learning", "Natural Language Processing", "Computer Vision",
    "Power BI", "Tableau", "Excel",
    # Infrastructure
    "AWS", "Azure", "Google Cloud", "Docker", "Kubernetes", "Terraform", "Linux", "DevOps",
    "CI/CD", "Cybersecurity",
    # Design
    "UI Design", "UX Design", "Figma", "Adobe Photoshop", "Adobe Illustrator", "Graphic Design",
    "Logo Design", "Video Editing", "Animation", "3D Modeling",
    # Writing and marketing
    "Copywriting", "Content Writing", "Technical Writing", "Translation", "Proofreading",
    "SEO", "Social Media Marketing", "Email Marketing", "Digital Marketing",
    # Business
    "Project Management", "Customer Support", "Virtual Assistance", "Bookkeeping",
    "Accounting", "Sales", "Business Analysis",
]


def skill_to_dict(skill: Skill) -> Dict[str, Any]:
    return {"id": skill.id, "name": skill.name}


def seed_skills(db: Session, names: Optional[List[str]] = None) -> int:
    """Insert catalogue skills that are missing; returns how many were added."""
    existing = {name for (name,) in db.query(Skill.name).all()}
    added = 0
    for name in names or PREDETERMINED_SKILLS:
        if name in existing:
            continue
        db.add(Skill(id=new_id(), name=name))
        existing.add(name)
        added += 1
    db.commit()
    if added:
        logger.info("[Skills] seeded %s skills (total=%s)", added, len(existing))
    return added


def list_skills(db: Session, query: Optional[str] = None) -> List[Dict[str, Any]]:
    rows = db.query(Skill)
    if query:
        rows = rows.filter(Skill.name.ilike(f"%{query}%")).order_by(Skill.name).limit(SEARCH_LIMIT)
    else:
        rows = rows.order_by(Skill.name)
    return [skill_to_dict(skill) for skill in rows.all()]
