"""Async wrapper around Calibre's ``ebook-convert`` command line tool."""

import asyncio
import tempfile
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from bookworker.config.settings import Settings
from bookworker.conversion.exceptions import ConversionError, ConversionTimeoutError
from bookworker.conversion.recipes import build_recipe, build_translation_config
from bookworker.logging.logger import Log


class CalibreConverter:
    """Runs ebook-convert in a subprocess, one temporary directory per call."""

    def __init__(
        self,
        *,
        executable: str = "ebook-convert",
        timeout_seconds: int = 600,
        download_timeout_seconds: int = 60,
        temp_dir: str | None = None,
    ) -> None:
        self._executable = executable
        self._timeout_seconds = timeout_seconds
        self._download_timeout_seconds = download_timeout_seconds
        self._temp_dir = temp_dir

    @classmethod
    def from_settings(cls, settings: Settings) -> "CalibreConverter":
        return cls(
            executable=settings.ebook_convert_path,
            timeout_seconds=settings.conversion_timeout_seconds,
            download_timeout_seconds=settings.download_timeout_seconds,
            temp_dir=settings.temp_dir,
        )

    async def convert(
        self,
        input_path: Path,
        output_path: Path,
        extra_args: Sequence[str] = (),
        timeout_seconds: int | None = None,
    ) -> str:
        """Run one conversion and return the tool's stdout.

        Raises:
            ConversionTimeoutError: if the process outlives its timeout.
            ConversionError: if the process cannot start or exits non-zero.
        """
        timeout = timeout_seconds if timeout_seconds is not None else self._timeout_seconds
        Log.debug(f"ebook-convert {input_path.name} -> {output_path.name}")
        try:
            process = await asyncio.create_subprocess_exec(
                self._executable,
                str(input_path),
                str(output_path),
                *extra_args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ConversionError(f"Cannot start {self._executable}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            raise ConversionTimeoutError(
                f"Conversion of {input_path.name} timed out after {timeout}s"
            ) from exc

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise ConversionError(message or f"ebook-convert exited with {process.returncode}")
        return stdout.decode("utf-8", errors="replace")

    async def to_epub(self, content: bytes, file_name: str) -> bytes:
        """Convert an uploaded book in any supported format to EPUB."""
        suffix = Path(file_name).suffix.lower() or ".txt"
        with self._workspace() as workspace:
            source = workspace / f"input{suffix}"
            target = workspace / "output.epub"
            source.write_bytes(content)
            await self.convert(source, target)
            return self._read_output(target)

    async def from_epub(self, content: bytes, output_format: str) -> bytes:
        with self._workspace() as workspace:
            source = workspace / "input.epub"
            target = workspace / f"output.{output_format}"
            source.write_bytes(content)
            await self.convert(source, target)
            return self._read_output(target)

    async def fetch_story(self, url: str) -> bytes:
        """Download a web story into an EPUB through a generated recipe."""
        with self._workspace() as workspace:
            recipe = workspace / "story.recipe"
            target = workspace / "story.epub"
            recipe.write_text(build_recipe(url), encoding="utf-8")
            await self.convert(
                recipe,
                target,
                timeout_seconds=self._download_timeout_seconds,
            )
            return self._read_output(target)

    async def translate_book(
        self,
        content: bytes,
        engine: str,
        target_language: str,
        api_key: str | None = None,
    ) -> bytes:
        """Translate a whole EPUB with the conversion engine's translation plugin."""
        with self._workspace() as workspace:
            source = workspace / "input.epub"
            target = workspace / "translated.epub"
            config = workspace / "translation.json"
            source.write_bytes(content)
            config.write_text(
                build_translation_config(engine, target_language, api_key),
                encoding="utf-8",
            )
            await self.convert(source, target, ["--translation-config", str(config)])
            return self._read_output(target)

    @contextmanager
    def _workspace(self) -> Iterator[Path]:
        with tempfile.TemporaryDirectory(prefix="bookworker-", dir=self._temp_dir) as tmp:
            yield Path(tmp)

    @staticmethod
    def _read_output(path: Path) -> bytes:
        if not path.is_file():
            raise ConversionError(f"ebook-convert produced no output file {path.name}")
        return path.read_bytes()

