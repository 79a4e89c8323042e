import asyncio
import io
import zipfile
from collections.abc import Callable
from typing import Any, TypeVar

import pytest

from bookworker.profile.models import UserProfile
from bookworker.profile.serializer import profile_from_dict, profile_to_dict

T = TypeVar("T")

CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="OEBPS/content.opf" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

OPF_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="3.0" unique-identifier="uid">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
    <dc:identifier id="uid">urn:uuid:0000</dc:identifier>
    <dc:title>{title}</dc:title>
    <dc:creator>{author}</dc:creator>
    {language}
  </metadata>
  <manifest/>
  <spine/>
</package>
"""


def make_xhtml(body: str, head: str = "") -> str:
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        '<html xmlns="http://www.w3.org/1999/xhtml" '
        'xmlns:epub="http://www.idpf.org/2007/ops">'
        f"<head><title>Chapter</title>{head}</head>"
        f"<body>{body}</body></html>"
    )


def build_epub(
    chapters: dict[str, str] | None = None,
    extra: dict[str, bytes | str] | None = None,
    *,
    title: str = "Sample Book",
    author: str = "Jane Doe",
    language: str | None = "en",
) -> bytes:
    """Build an in-memory EPUB. Chapter names are relative to OEBPS/."""
    language_element = f"<dc:language>{language}</dc:language>" if language else ""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(
            zipfile.ZipInfo("mimetype"),
            "application/epub+zip",
            compress_type=zipfile.ZIP_STORED,
        )
        archive.writestr("META-INF/container.xml", CONTAINER_XML)
        archive.writestr(
            "OEBPS/content.opf",
            OPF_TEMPLATE.format(title=title, author=author, language=language_element),
        )
        for name, body in (chapters or {}).items():
            archive.writestr(f"OEBPS/{name}", make_xhtml(body))
        for name, content in (extra or {}).items():
            archive.writestr(name, content)
    return buffer.getvalue()


class InMemoryProfileRepository:
    """ProfileRepository stand-in with the same read-modify-write semantics.

    Documents are stored serialized, so a mutation that raises leaves the
    stored profile untouched, like a rolled-back transaction.
    """

    def __init__(self) -> None:
        self.documents: dict[int, dict[str, Any]] = {}

    async def get(self, user_id: int) -> UserProfile | None:
        document = self.documents.get(user_id)
        return profile_from_dict(document) if document is not None else None

    async def put(self, profile: UserProfile) -> None:
        self.documents[profile.user_id] = profile_to_dict(profile)

    async def update(self, user_id: int, mutate: Callable[[UserProfile], T]) -> T:
        await asyncio.sleep(0)
        document = self.documents.get(user_id)
        profile = (
            profile_from_dict(document)
            if document is not None
            else UserProfile.create(user_id)
        )
        result = mutate(profile)
        self.documents[user_id] = profile_to_dict(profile)
        return result

    async def users_with_pending_jobs(self) -> list[int]:
        return [
            user_id
            for user_id, document in self.documents.items()
            if document.get("queue")
        ]


@pytest.fixture()
def epub_builder() -> Callable[..., bytes]:
    return build_epub


@pytest.fixture()
def xhtml_builder() -> Callable[..., str]:
    return make_xhtml


@pytest.fixture()
def sample_epub_bytes() -> bytes:
    """A two-chapter English EPUB with one image."""
    return build_epub(
        {
            "ch1.xhtml": '<p>Hello  world.</p><p><img src="a.png"/></p>',
            "ch2.xhtml": "<p>Second chapter.</p>",
        },
        extra={"OEBPS/images/a.png": b"\x89PNG fake"},
    )


@pytest.fixture()
def profile_repo() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()
