"""Codebase source - walks a local directory and classifies its files."""

import asyncio
import os
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

import aiofiles
from loguru import logger

from ..errors import RootNotFoundError
from ..models import FileRecord, WalkProgress, WalkResult, WalkSummary
from .base import Source
from .classify import is_config_file, is_entry_point_name, is_generated_file, is_test_file
from .ignore import IGNORE_FILE_NAMES, IgnoreRules

# Larger files are skipped rather than loaded
MAX_FILE_SIZE = 1024 * 1024


class CodebaseSource(Source):
    def __init__(
        self,
        path: str | Path,
        max_files: int = 500,
        include: list[str] | None = None,
        exclude: list[str] | None = None,
        concurrency: int = 10,
        max_file_size: int = MAX_FILE_SIZE,
        ignore_files: tuple[str, ...] = IGNORE_FILE_NAMES,
        cancel_event: asyncio.Event | None = None,
        on_progress: Callable[[WalkProgress], None] | None = None,
    ):
        self.path = Path(path).resolve()
        self.max_files = max_files
        self.include = include or []
        self.exclude = exclude or []
        self.concurrency = concurrency
        self.max_file_size = max_file_size
        self.ignore_files = ignore_files
        self.cancel_event = cancel_event
        self.on_progress = on_progress

        self._rules: IgnoreRules | None = None
        self._semaphore: asyncio.Semaphore | None = None
        self._files: list[FileRecord] = []
        self._summary = WalkSummary()

    async def scan(self) -> WalkResult:
        self._check_root()

        self._files = []
        self._summary = WalkSummary()
        self._rules = IgnoreRules.load(
            self.path, self.ignore_files, exclude=self.exclude, include=self.include
        )
        self._semaphore = asyncio.Semaphore(self.concurrency)

        await self._walk_directory(self.path, 0)

        self._summary.total_files = len(self._files)
        cancelled = self._cancelled()
        logger.info(
            "Discovered {} files in {} directories ({} skipped{})",
            len(self._files),
            self._summary.total_directories,
            self._summary.skipped_count,
            ", cancelled" if cancelled else "",
        )
        return WalkResult(
            files=list(self._files),
            summary=self._summary,
            root_path=str(self.path),
            timestamp=datetime.now(timezone.utc).isoformat(),
            cancelled=cancelled,
        )

    def _check_root(self) -> None:
        if not self.path.is_dir():
            raise RootNotFoundError(str(self.path))
        try:
            with os.scandir(self.path):
                pass
        except OSError as e:
            raise RootNotFoundError(str(self.path)) from e

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _full(self) -> bool:
        return len(self._files) >= self.max_files

    def _record_skip(self, reason: str) -> None:
        self._summary.skipped_count += 1
        self._summary.skipped_reasons[reason] = self._summary.skipped_reasons.get(reason, 0) + 1

    def _relative(self, path: Path) -> str:
        return path.relative_to(self.path).as_posix()

    async def _walk_directory(self, dir_path: Path, depth: int) -> None:
        if self._cancelled() or self._full():
            return

        self._summary.total_directories += 1
        rel_dir = self._relative(dir_path) if dir_path != self.path else "."
        if self.on_progress:
            self.on_progress(WalkProgress(len(self._files), self._summary.total_directories, rel_dir))

        try:
            with os.scandir(dir_path) as it:
                entries = sorted(it, key=lambda e: e.name)
            directories = [e for e in entries if e.is_dir(follow_symlinks=False)]
            files = [e for e in entries if e.is_file()]
        except OSError as e:
            logger.debug("Cannot list {}: {}", dir_path, e)
            self._record_skip("error")
            return

        for entry in directories:
            if self._cancelled() or self._full():
                break
            sub_path = dir_path / entry.name
            reason = self._rules.skip_directory_reason(entry.name, self._relative(sub_path), depth)
            if reason:
                logger.debug("Skipping directory {} ({})", entry.name, reason)
                self._record_skip(reason)
                continue
            await self._walk_directory(sub_path, depth + 1)

        candidates: list[tuple[Path, str]] = []
        for entry in files:
            file_path = dir_path / entry.name
            rel_path = self._relative(file_path)
            if self._rules.ignores_file(rel_path):
                self._record_skip("pattern")
                continue
            if not self._rules.is_included(rel_path):
                self._record_skip("not-included")
                continue
            candidates.append((file_path, rel_path))

        # Read in concurrent batches sized to the remaining budget; gather keeps walk order.
        index = 0
        while index < len(candidates) and not self._cancelled() and not self._full():
            batch = candidates[index : index + self.max_files - len(self._files)]
            index += len(batch)
            records = await asyncio.gather(
                *[self._read_record(file_path, rel_path, depth) for file_path, rel_path in batch]
            )
            for record in records:
                if record is not None:
                    self._add(record)

    async def _read_record(self, file_path: Path, rel_path: str, depth: int) -> FileRecord | None:
        if self._cancelled():
            return None

        async with self._semaphore:
            try:
                size = file_path.stat().st_size
                if size > self.max_file_size:
                    logger.debug("Skipping {} ({} bytes)", rel_path, size)
                    self._record_skip("too-large")
                    return None
                async with aiofiles.open(file_path, "r", encoding="utf-8", errors="replace") as f:
                    content = await f.read()
            except OSError as e:
                logger.debug("Cannot read {}: {}", rel_path, e)
                self._record_skip("error")
                return None

        name = file_path.name
        parent = str(PurePosixPath(rel_path).parent)
        return FileRecord(
            path=rel_path,
            absolute_path=str(file_path),
            name=name,
            extension=file_path.suffix,
            size=size,
            line_count=len(content.split("\n")),
            depth=depth,
            directory="" if parent == "." else parent,
            is_entry_point=is_entry_point_name(name, rel_path, depth) or content.startswith("#!"),
            is_config=is_config_file(name),
            is_test=is_test_file(rel_path, name),
            is_generated=is_generated_file(name, rel_path),
        )

    def _add(self, record: FileRecord) -> None:
        self._files.append(record)
        ext = record.extension or "(no extension)"
        self._summary.by_extension[ext] = self._summary.by_extension.get(ext, 0) + 1
        directory = record.directory or "(root)"
        self._summary.by_directory[directory] = self._summary.by_directory.get(directory, 0) + 1


async def walk_directory(path: str | Path, **options) -> WalkResult:
    return await CodebaseSource(path, **options).scan()
