from __future__ import annotations

import dataclasses
import json
import logging
import re
from datetime import date
from typing import Any, Union

from .slug import generate_slug

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR_NAME = "KIEN HA MINH"
DEFAULT_AUTHOR_EMAIL = "minhkien2208@gmail.com"
DEFAULT_PROJECT_STATUS = "PUBLISHED"

MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

SECTION_ALIASES = {
    "bio": ["about me"],
    "projects": ["projects"],
}

HEADING_LOOKUP = {
    alias: key for key, aliases in SECTION_ALIASES.items() for alias in aliases
}

SOCIAL_TEXT_LABELS = {
    "address": "Address",
    "mobile": "Mobile",
}

SOCIAL_LINK_LABELS = {
    "facebook": "Facebook",
    "linkedin": "LinkedIn",
    "github": "Github",
}

DESCRIPTION_LABEL = "Description"
RESPONSIBILITIES_LABEL = "My responsibilities"
TECHNOLOGIES_LABEL = "Technologies used"
WEBSITE_LABEL = "Website"

SECTION_HEADING_RE = re.compile(r"^##\s+(?P<heading>.+)$")
BLOCK_TITLE_RE = re.compile(r"^###(?:\s+(?P<title>.*))?$")
RULE_RE = re.compile(r"^-{3,}$")
COLUMN_TAG_RE = re.compile(r"(</?columns?>)", re.I)
BOLD_LABEL_RE = re.compile(r"^\*\*(?P<label>[^*]+)\*\*$")
EMPHASIS_RE = re.compile(r"(?<!\*)\*(?!\*)(?P<text>[^*\n]+)\*(?!\*)")
IMAGE_RE = re.compile(r"<image\s+source=\"(?P<url>[^\"]+)\"", re.I)
PROPERTIES_RE = re.compile(r"<properties>\s*(?P<body>.*?)\s*</properties>", re.S | re.I)
URL_WRAPPER_RE = re.compile(r"^\{\{|\}\}$")
BULLET_RE = re.compile(r"^-\s*")
YEAR_RE = re.compile(r"^[0-9]{4}$")
TECHNOLOGY_SPLIT_RE = re.compile(r"[,\n]")


@dataclasses.dataclass(frozen=True)
class DateRange:
    start_date: date | None
    end_date: date | None
    is_ongoing: bool

    @classmethod
    def unparseable(cls) -> DateRange:
        return cls(start_date=None, end_date=None, is_ongoing=False)


@dataclasses.dataclass(frozen=True)
class AuthorProfile:
    name: str
    email: str
    avatar: str | None = None
    bio: str | None = None
    social_links: dict[str, str] = dataclasses.field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar,
            "bio": self.bio,
            "socialLinks": dict(self.social_links),
        }


@dataclasses.dataclass(frozen=True)
class ProjectRecord:
    title: str
    slug: str
    description: str
    live_url: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    is_ongoing: bool = False
    status: str = DEFAULT_PROJECT_STATUS
    github_url: str | None = None
    images: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "slug": self.slug,
            "description": self.description,
            "status": self.status,
            "images": list(self.images),
            "githubUrl": self.github_url,
            "liveUrl": self.live_url,
            "startDate": format_date(self.start_date),
            "endDate": format_date(self.end_date),
            "isOngoing": self.is_ongoing,
        }


@dataclasses.dataclass(frozen=True)
class ParsedProject:
    project: ProjectRecord
    technology_names: list[str] = dataclasses.field(default_factory=list)


@dataclasses.dataclass(frozen=True)
class HeaderBlock:
    lines: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclasses.dataclass(frozen=True)
class BioBlock:
    lines: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclasses.dataclass(frozen=True)
class ProjectBlock:
    title: str
    lines: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


Block = Union[HeaderBlock, BioBlock, ProjectBlock]


def parse_document_to_author(
    text: str,
    default_name: str = DEFAULT_AUTHOR_NAME,
    default_email: str = DEFAULT_AUTHOR_EMAIL,
) -> AuthorProfile:
    blocks = split_document(text)
    header = next((b for b in blocks if isinstance(b, HeaderBlock)), HeaderBlock())
    bio = next((b for b in blocks if isinstance(b, BioBlock)), None)
    header_text = header.text

    social_links = {
        key: clean_url(extract_labelled_value(header_text, label) or "")
        for key, label in SOCIAL_TEXT_LABELS.items()
    }
    for key, label in SOCIAL_LINK_LABELS.items():
        social_links[key] = extract_labelled_link(header_text, label) or ""

    return AuthorProfile(
        name=extract_page_title(header_text) or default_name,
        email=extract_labelled_value(header_text, "Email") or default_email,
        avatar=extract_avatar(header_text),
        bio=parse_bio(bio) if bio else None,
        social_links=social_links,
    )


def parse_document_to_projects(text: str) -> list[ParsedProject]:
    projects = [
        parse_project_block(block)
        for block in split_document(text)
        if isinstance(block, ProjectBlock)
    ]
    logger.debug(f"Parsed {len(projects)} projects")
    return projects


def split_document(text: str) -> list[Block]:
    """Scan the export line by line into header, bio and project blocks.

    Level-2 headings switch the scanner between regions; only the
    projects region is cut further, at every ``### Title`` line.
    Regions other than the header, bio and projects are dropped.
    """
    header_lines: list[str] = []
    bio_lines: list[str] | None = None
    project_blocks: list[ProjectBlock] = []
    title: str | None = None
    body: list[str] = []
    state = "header"

    def flush_project() -> None:
        if title is None:
            return
        if title:
            project_blocks.append(ProjectBlock(title=title, lines=tuple(body)))
        else:
            logger.debug("Skipping project block without a title")

    for raw_line in (text or "").splitlines():
        line = raw_line.strip()
        heading = SECTION_HEADING_RE.match(line)
        if heading:
            flush_project()
            title, body = None, []
            state = HEADING_LOOKUP.get(normalize_heading(heading.group("heading")), "other")
            if state == "bio" and bio_lines is None:
                bio_lines = []
            continue
        if state == "header":
            header_lines.append(line)
        elif state == "bio":
            bio_lines.append(line)
        elif state == "projects":
            block_title = BLOCK_TITLE_RE.match(line)
            if block_title:
                flush_project()
                title, body = (block_title.group("title") or "").strip(), []
            elif title is not None:
                body.append(line)
    flush_project()

    blocks: list[Block] = [HeaderBlock(lines=tuple(header_lines))]
    if bio_lines is not None:
        blocks.append(BioBlock(lines=tuple(bio_lines)))
    blocks.extend(project_blocks)
    logger.debug(f"Split document into {len(project_blocks)} project blocks")
    return blocks


def normalize_heading(text: str) -> str:
    return " ".join(text.lower().split())


def parse_bio(block: BioBlock) -> str | None:
    bullets = []
    for line in block.lines:
        if not line.startswith("-") or RULE_RE.match(line):
            continue
        bullet = BULLET_RE.sub("", line).strip()
        if bullet:
            bullets.append(bullet)
    return " ".join(bullets) or None


def parse_project_block(block: ProjectBlock) -> ParsedProject:
    body = block.text
    date_text = find_first_emphasis(body)
    date_range = parse_date_range(date_text) if date_text else DateRange.unparseable()
    description = extract_description(body)
    project = ProjectRecord(
        title=block.title,
        slug=generate_slug(block.title),
        description=description or block.title,
        live_url=extract_website_url(body),
        start_date=date_range.start_date,
        end_date=date_range.end_date,
        is_ongoing=date_range.is_ongoing,
    )
    technology_names = extract_technologies(extract_technologies_block(body))
    return ParsedProject(project=project, technology_names=technology_names)


def find_first_emphasis(text: str) -> str | None:
    # The date range of a project is the first italic span in its block.
    match = EMPHASIS_RE.search(text or "")
    return match.group("text") if match else None


def parse_date_range(text: str | None) -> DateRange:
    if not text:
        return DateRange.unparseable()
    parts = [part.strip() for part in text.strip().split("-")]
    if len(parts) != 2:
        logger.debug(f"Unparseable date range {text!r}")
        return DateRange.unparseable()
    start_text, end_text = parts
    is_ongoing = end_text.lower() == "now"
    start_date = parse_month_year(start_text)
    end_date = None if is_ongoing else parse_month_year(end_text)
    return DateRange(start_date=start_date, end_date=end_date, is_ongoing=is_ongoing)


def parse_month_year(text: str | None) -> date | None:
    parts = (text or "").split()
    if len(parts) != 2:
        return None
    month = MONTHS.get(parts[0].lower())
    if month is None or not YEAR_RE.match(parts[1]):
        return None
    try:
        return date(int(parts[1]), month, 1)
    except ValueError:
        return None


def extract_technologies(text: str | None) -> list[str]:
    technologies: list[str] = []
    for item in TECHNOLOGY_SPLIT_RE.split(text or ""):
        name = item.strip()
        if name and name not in technologies:
            technologies.append(name)
    return technologies


def split_columns(text: str) -> list[str]:
    """Raw contents of every ``<column>`` cell in document order.

    A cell ends at its closing tag, at the next column tag, or at the end
    of the text when the export left it unclosed.
    """
    cells: list[str] = []
    current: list[str] | None = None
    for token in COLUMN_TAG_RE.split(text or ""):
        tag = token.lower()
        if tag in {"<column>", "</column>", "<columns>", "</columns>"}:
            if current is not None:
                cells.append("".join(current))
            current = [] if tag == "<column>" else None
        elif current is not None:
            current.append(token)
    if current is not None:
        cells.append("".join(current))
    return cells


def find_labelled_section(cells: list[str], label: str) -> str | None:
    wanted = label.lower()
    for index, cell in enumerate(cells[:-1]):
        match = BOLD_LABEL_RE.match(cell.strip())
        if match and match.group("label").strip().lower().startswith(wanted):
            return cells[index + 1]
    return None


def content_lines(cell: str | None, skip_bold: bool = False) -> list[str]:
    lines = []
    for raw_line in (cell or "").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("<") or RULE_RE.match(line):
            continue
        if skip_bold and line.startswith("**"):
            continue
        lines.append(line)
    return lines


def extract_description(text: str) -> str:
    cells = split_columns(text)
    description = " ".join(
        content_lines(find_labelled_section(cells, DESCRIPTION_LABEL), skip_bold=True)
    )
    responsibilities = " ".join(
        content_lines(find_labelled_section(cells, RESPONSIBILITIES_LABEL))
    )
    if responsibilities:
        description += (". " if description else "") + responsibilities
    return description


def extract_technologies_block(text: str) -> str:
    cells = split_columns(text)
    return "\n".join(content_lines(find_labelled_section(cells, TECHNOLOGIES_LABEL)))


def extract_website_url(text: str) -> str | None:
    return extract_labelled_link(text, WEBSITE_LABEL)


def extract_labelled_value(text: str, label: str) -> str | None:
    pattern = r"\*\*" + re.escape(label) + r"\*\*:[ \t]*([^\n]+)"
    match = re.search(pattern, text or "", re.I)
    if not match:
        return None
    return match.group(1).strip() or None


def extract_labelled_link(text: str, label: str) -> str | None:
    pattern = (
        r"\*\*" + re.escape(label) + r"\*\*:[ \t]*\[([^\]]*)\]\(\{\{([^}]+)\}\}\)"
    )
    match = re.search(pattern, text or "", re.I)
    if not match:
        return None
    return clean_url(match.group(2)) or None


def extract_avatar(text: str) -> str | None:
    match = IMAGE_RE.search(text or "")
    if not match:
        return None
    return clean_url(match.group("url")) or None


def extract_page_title(text: str) -> str | None:
    match = PROPERTIES_RE.search(text or "")
    if not match:
        return None
    try:
        properties = json.loads(match.group("body"))
    except ValueError:
        logger.debug("Ignoring page properties that are not JSON")
        return None
    if not isinstance(properties, dict):
        return None
    title = properties.get("title")
    if not isinstance(title, str):
        return None
    return title.strip() or None


def clean_url(value: str) -> str:
    return URL_WRAPPER_RE.sub("", value.strip()).strip()


def format_date(value: date | None) -> str | None:
    return value.isoformat() if value else None
