"""Plain-text rendering of the viewer state."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from .state import ProfileViewer

RULE = "=" * 60


def _year(value: Any) -> str:
    if isinstance(value, str) and len(value) >= 4 and value[:4].isdigit():
        return value[:4]
    return "?"


def format_skill_buttons(skills: Iterable[str], active: Optional[str]) -> str:
    """Render skills as buttons; the active filter is wrapped in asterisks."""
    active_key = active.lower() if active else None
    buttons = []
    for skill in skills:
        label = f"*{skill}*" if active_key and skill.lower() == active_key else skill
        buttons.append(f"[{label}]")
    return " ".join(buttons) if buttons else "No skills available"


def format_education(entries: Iterable[Mapping[str, Any]]) -> List[str]:
    lines: List[str] = []
    for entry in entries:
        started = _year(entry.get("startedAt"))
        if entry.get("ongoing"):
            finished = "Present"
        else:
            finished = _year(entry.get("completedAt")) if entry.get("completedAt") else "N/A"
        line = f"- {entry.get('course', '')}, {entry.get('institute', '')} ({started} - {finished})"
        if entry.get("ongoing"):
            line += " [Ongoing]"
        lines.append(line)
    return lines


def format_links(links: Optional[Mapping[str, Any]]) -> str:
    if not links:
        return ""
    labels = (("github", "GitHub"), ("linkedin", "LinkedIn"), ("portfolio", "Portfolio"))
    parts = [f"{label}: {links[key]}" for key, label in labels if links.get(key)]
    return "  ".join(parts)


def format_project(project: Mapping[str, Any]) -> List[str]:
    lines = [
        f"* {project.get('title') or 'Untitled project'}",
        f"  {project.get('description') or 'No description available'}",
    ]
    skills = project.get("skills")
    if isinstance(skills, list) and skills:
        lines.append("  Skills: " + ", ".join(str(skill) for skill in skills))
    links = project.get("links") or {}
    link_parts = []
    if links.get("github"):
        link_parts.append(f"Code: {links['github']}")
    if links.get("live"):
        link_parts.append(f"Live Demo: {links['live']}")
    if link_parts:
        lines.append("  " + "  ".join(link_parts))
    return lines


def _render_error(viewer: ProfileViewer) -> str:
    return "\n".join(
        [
            RULE,
            "Connection Error",
            viewer.error or "",
            "Type 'retry' to try again.",
            RULE,
        ]
    )


def render_viewer(viewer: ProfileViewer) -> str:
    if viewer.needs_retry:
        return _render_error(viewer)

    profile: Dict[str, Any] = viewer.profile or {}
    lines: List[str] = [RULE, profile.get("name") or "No profile published yet"]
    if profile.get("email"):
        lines.append(profile["email"])
    links = format_links(profile.get("links"))
    if links:
        lines.append(links)
    lines.append(RULE)

    lines.extend(["", "Top Skills", format_skill_buttons(viewer.top_skills, viewer.selected_skill)])

    education = profile.get("education") or []
    if education:
        lines.extend(["", "Education", *format_education(education)])

    heading = "Projects"
    if viewer.projects:
        heading += f" ({len(viewer.projects)})"
    lines.extend(["", heading])

    filters = []
    if viewer.selected_skill:
        filters.append(f"Skill: {viewer.selected_skill}")
    if viewer.search_query:
        filters.append(f'Search: "{viewer.search_query}"')
    if filters:
        lines.append("Active filters: " + ", ".join(filters) + "  (type 'clear' to reset)")
    if viewer.matched_skills:
        lines.append("Matching skills: " + ", ".join(viewer.matched_skills))

    if viewer.projects:
        for project in viewer.projects:
            lines.extend(format_project(project))
    else:
        lines.append("No projects found. Try adjusting your filters or search query.")
    return "\n".join(lines)


__all__ = [
    "format_education",
    "format_links",
    "format_project",
    "format_skill_buttons",
    "render_viewer",
]
