from __future__ import annotations

import dataclasses
from typing import Any, Iterable

from .parser import AuthorProfile, ParsedProject
from .slug import generate_slug, generate_unique_slugs


def build_migration_payload(
    author: AuthorProfile,
    projects: list[ParsedProject],
    existing_slugs: Iterable[str] = (),
) -> dict[str, Any]:
    projects = assign_unique_slugs(projects, existing_slugs)
    technologies = build_technology_refs(collect_technology_names(projects))
    slug_by_name = {entry["name"]: entry["slug"] for entry in technologies}
    return {
        "author": author.to_dict(),
        "technologies": technologies,
        "projects": [
            build_project_entry(parsed, slug_by_name) for parsed in projects
        ],
    }


def build_project_entry(parsed: ParsedProject, slug_by_name: dict[str, str]) -> dict[str, Any]:
    entry = parsed.project.to_dict()
    entry["technologyNames"] = list(parsed.technology_names)
    technology_slugs: list[str] = []
    for name in parsed.technology_names:
        slug = slug_by_name.get(name)
        if slug and slug not in technology_slugs:
            technology_slugs.append(slug)
    entry["technologySlugs"] = technology_slugs
    return entry


def collect_technology_names(projects: Iterable[ParsedProject]) -> list[str]:
    names: list[str] = []
    seen: set[str] = set()
    for parsed in projects:
        for name in parsed.technology_names:
            if name in seen:
                continue
            seen.add(name)
            names.append(name)
    return names


def build_technology_refs(names: Iterable[str]) -> list[dict[str, str]]:
    refs = []
    seen: set[str] = set()
    for name in names:
        if name in seen:
            continue
        seen.add(name)
        refs.append({"name": name, "slug": generate_slug(name)})
    return refs


def assign_unique_slugs(
    projects: list[ParsedProject], existing_slugs: Iterable[str] = ()
) -> list[ParsedProject]:
    slugs = generate_unique_slugs(
        [parsed.project.title for parsed in projects], existing_slugs
    )
    return [
        dataclasses.replace(
            parsed, project=dataclasses.replace(parsed.project, slug=slug)
        )
        for parsed, slug in zip(projects, slugs)
    ]
