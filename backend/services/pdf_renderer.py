# backend/services/pdf_renderer.py
"""
PDF Renderer

Renders a GeneratedCvContent document to PDF bytes with ReportLab.
All templates are single-column text (no tables, icons or images) so ATS
parsers can read them; they differ only in typography and accents.
"""

import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Dict, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer

logger = logging.getLogger(__name__)

SECTION_LABELS = {
    "es": {
        "summary": "Perfil Profesional",
        "experience": "Experiencia Profesional",
        "education": "Educación",
        "technicalSkills": "Habilidades Técnicas",
        "softSkills": "Habilidades Blandas",
        "complementaryEducation": "Formación Complementaria",
        "languages": "Idiomas",
        "certifications": "Certificaciones",
        "present": "Actualidad",
    },
    "en": {
        "summary": "Professional Summary",
        "experience": "Professional Experience",
        "education": "Education",
        "technicalSkills": "Technical Skills",
        "softSkills": "Soft Skills",
        "complementaryEducation": "Complementary Education",
        "languages": "Languages",
        "certifications": "Certifications",
        "present": "Present",
    },
}


@dataclass(frozen=True)
class TemplateStyle:
    font: str
    bold_font: str
    accent: Any
    name_size: int
    heading_size: int
    body_size: float
    centered_header: bool
    uppercase_headings: bool
    rule_under_headings: bool


TEMPLATES = {
    "classic": TemplateStyle(
        font="Times-Roman", bold_font="Times-Bold", accent=colors.black,
        name_size=20, heading_size=12, body_size=10,
        centered_header=True, uppercase_headings=True, rule_under_headings=True,
    ),
    "modern": TemplateStyle(
        font="Helvetica", bold_font="Helvetica-Bold", accent=colors.HexColor("#1d4ed8"),
        name_size=22, heading_size=12, body_size=10,
        centered_header=False, uppercase_headings=False, rule_under_headings=True,
    ),
    "minimalist": TemplateStyle(
        font="Helvetica", bold_font="Helvetica-Bold", accent=colors.HexColor("#374151"),
        name_size=18, heading_size=11, body_size=9.5,
        centered_header=False, uppercase_headings=True, rule_under_headings=False,
    ),
}


def _text(value: Any) -> str:
    return escape(str(value or "")).replace("\n", "<br/>")


def _styles(style: TemplateStyle) -> Dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    alignment = 1 if style.centered_header else 0
    return {
        "name": ParagraphStyle(
            "CvName", parent=base["Heading1"], fontName=style.bold_font,
            fontSize=style.name_size, leading=style.name_size + 4,
            textColor=style.accent, alignment=alignment, spaceAfter=2,
        ),
        "title": ParagraphStyle(
            "CvTitle", parent=base["Normal"], fontName=style.font,
            fontSize=style.body_size + 2, alignment=alignment, spaceAfter=2,
        ),
        "contact": ParagraphStyle(
            "CvContact", parent=base["Normal"], fontName=style.font,
            fontSize=style.body_size - 1, textColor=colors.HexColor("#4b5563"),
            alignment=alignment, spaceAfter=8,
        ),
        "heading": ParagraphStyle(
            "CvHeading", parent=base["Heading2"], fontName=style.bold_font,
            fontSize=style.heading_size, textColor=style.accent,
            spaceBefore=10, spaceAfter=3,
        ),
        "item": ParagraphStyle(
            "CvItem", parent=base["Normal"], fontName=style.bold_font,
            fontSize=style.body_size, spaceAfter=1,
        ),
        "body": ParagraphStyle(
            "CvBody", parent=base["Normal"], fontName=style.font,
            fontSize=style.body_size, leading=style.body_size + 3, spaceAfter=5,
        ),
    }


def _heading(story: List, label: str, style: TemplateStyle, styles: Dict[str, ParagraphStyle]):
    story.append(Paragraph(_text(label.upper() if style.uppercase_headings else label), styles["heading"]))
    if style.rule_under_headings:
        story.append(HRFlowable(width="100%", thickness=0.6, color=style.accent, spaceAfter=4))


def _date_range(start: str, end: str, present: str) -> str:
    start = (start or "").strip()
    end = (end or "").strip() or present
    return f"{start} - {end}" if start else end


def build_story(content: Dict[str, Any], template: str, language: str) -> List:
    """Flowables for one CV, in reading order."""
    style = TEMPLATES.get(template, TEMPLATES["classic"])
    labels = SECTION_LABELS.get(language, SECTION_LABELS["es"])
    styles = _styles(style)
    story: List = []

    info = content.get("personalInfo") or {}
    if info.get("fullName"):
        story.append(Paragraph(_text(info["fullName"]), styles["name"]))
    if info.get("jobTitle"):
        story.append(Paragraph(_text(info["jobTitle"]), styles["title"]))
    contact = [info.get(k) for k in ("email", "phone", "city", "linkedin", "portfolio")]
    contact = [c for c in contact if c]
    if contact:
        story.append(Paragraph(" | ".join(_text(c) for c in contact), styles["contact"]))

    if content.get("summary"):
        _heading(story, labels["summary"], style, styles)
        story.append(Paragraph(_text(content["summary"]), styles["body"]))

    if content.get("experience"):
        _heading(story, labels["experience"], style, styles)
        for exp in content["experience"]:
            dates = _date_range(exp.get("startDate"), exp.get("endDate"), labels["present"])
            story.append(Paragraph(
                f"{_text(exp.get('position'))} - {_text(exp.get('company'))} ({_text(dates)})",
                styles["item"],
            ))
            if exp.get("description"):
                story.append(Paragraph(_text(exp["description"]), styles["body"]))

    if content.get("education"):
        _heading(story, labels["education"], style, styles)
        for edu in content["education"]:
            dates = _date_range(edu.get("startDate"), edu.get("endDate"), labels["present"])
            story.append(Paragraph(f"{_text(edu.get('degree'))} ({_text(dates)})", styles["item"]))
            story.append(Paragraph(_text(edu.get("institution")), styles["body"]))

    for key in ("technicalSkills", "softSkills"):
        if content.get(key):
            _heading(story, labels[key], style, styles)
            story.append(Paragraph(", ".join(_text(s) for s in content[key]), styles["body"]))

    if content.get("complementaryEducation"):
        _heading(story, labels["complementaryEducation"], style, styles)
        for course in content["complementaryEducation"]:
            year = f" ({_text(course.get('year'))})" if course.get("year") else ""
            story.append(Paragraph(
                f"{_text(course.get('program'))} - {_text(course.get('institution'))}{year}",
                styles["body"],
            ))

    if content.get("languages"):
        _heading(story, labels["languages"], style, styles)
        story.append(Paragraph(
            ", ".join(f"{_text(l.get('name'))}: {_text(l.get('level'))}" for l in content["languages"]),
            styles["body"],
        ))

    if content.get("certifications"):
        _heading(story, labels["certifications"], style, styles)
        for cert in content["certifications"]:
            story.append(Paragraph(_text(cert), styles["body"]))

    if not story:
        story.append(Spacer(1, 1))
    return story


def render_cv_pdf(content: Dict[str, Any], template: str = "classic", language: str = "es") -> bytes:
    """
    Render a CV to PDF.

    Args:
        content: GeneratedCvContent as a dict
        template: "classic", "modern" or "minimalist" (unknown -> classic)
        language: "es" or "en", used for section labels

    Returns:
        PDF file bytes
    """
    if template not in TEMPLATES:
        logger.warning(f"Unknown template '{template}', using 'classic'")

    buffer = BytesIO()
    info = content.get("personalInfo") or {}
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        topMargin=0.6 * inch,
        bottomMargin=0.6 * inch,
        leftMargin=0.75 * inch,
        rightMargin=0.75 * inch,
        title=info.get("fullName") or "CV",
    )
    doc.build(build_story(content, template, language))

    pdf_bytes = buffer.getvalue()
    logger.info(f"Rendered {template} CV PDF: {len(pdf_bytes)} bytes")
    return pdf_bytes
