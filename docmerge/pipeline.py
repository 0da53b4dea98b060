"""Pipeline orchestration: enumerate, normalize, aggregate, write."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .aggregator import Aggregator
from .config import DocMergeConfig
from .enumerator import SourceEnumerator
from .errors import ConfigurationError, DecodeError, DocMergeError, SourceNotFoundError, WriteError
from .logging import get_logger
from .manifest import ManifestBuilder
from .models import DocumentRecord, LibraryOutcome, LibrarySource, RunSummary, SkippedDocument, WriteResult
from .normalizer import ContentNormalizer
from .writer import Writer


class Pipeline:
    """Coordinates the aggregation of every configured library."""

    def __init__(
        self,
        enumerator: SourceEnumerator | None = None,
        normalizer: ContentNormalizer | None = None,
        aggregator: Aggregator | None = None,
        writer: Writer | None = None,
        manifest_builder: ManifestBuilder | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.enumerator = enumerator or SourceEnumerator()
        self.normalizer = normalizer or ContentNormalizer()
        self.aggregator = aggregator
        self.writer = writer
        self.manifest_builder = manifest_builder
        self.clock = clock or (lambda: datetime.now(UTC))
        self.logger = get_logger("pipeline")

    def run(
        self,
        config: DocMergeConfig,
        *,
        output_dir: Path | None = None,
        index_path: Path | None = None,
        workers: int | None = None,
        dry_run: bool = False,
    ) -> RunSummary:
        """Aggregate all libraries, then write the index.

        Failures are isolated per library; the returned summary lists every
        outcome in configuration order.
        """
        target_dir = output_dir or config.output_dir
        target_index = index_path or config.index_file
        worker_count = max(1, workers or config.workers)
        aggregator = self.aggregator or Aggregator(config.templates_dir)
        writer = self.writer or Writer(dry_run=dry_run)
        generated_at = self.clock()

        self.logger.info(
            "Aggregating %d libraries into %s (workers=%d)",
            len(config.libraries),
            target_dir,
            worker_count,
        )

        def _build(library: LibrarySource) -> LibraryOutcome:
            return self.build_library(
                library,
                config.checkout_for(library),
                target_dir,
                aggregator=aggregator,
                writer=writer,
                generated_at=generated_at,
            )

        if worker_count == 1 or len(config.libraries) < 2:
            outcomes = [_build(library) for library in config.libraries]
        else:
            with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="docmerge") as executor:
                futures = [executor.submit(_build, library) for library in config.libraries]
                outcomes = [future.result() for future in futures]

        summary = RunSummary(outcomes=outcomes)
        if target_index is not None:
            summary.index_path = target_index
            try:
                summary.index_result = self.write_index(config, target_dir, target_index, writer)
            except ConfigurationError:
                raise
            except DocMergeError as exc:
                self.logger.error("Failed to write index %s: %s", target_index, exc)
                summary.index_error = exc

        if summary.failures:
            self.logger.error(
                "%d of %d libraries failed: %s",
                len(summary.failures),
                len(outcomes),
                ", ".join(outcome.library.name for outcome in summary.failures),
            )
        return summary

    def build_library(
        self,
        library: LibrarySource,
        checkout: Path,
        output_dir: Path,
        *,
        aggregator: Aggregator,
        writer: Writer,
        generated_at: Optional[datetime] = None,
    ) -> LibraryOutcome:
        """Aggregate and write one library, capturing its failure instead of raising.

        A :class:`ConfigurationError` (for example a broken template) still
        propagates since it affects every library.
        """
        output_path = output_dir / library.output_file
        outcome = LibraryOutcome(library=library, output_path=output_path)
        try:
            records, skipped, unmatched = self.collect(library, checkout)
            outcome.skipped = skipped
            outcome.unmatched = unmatched
            output = aggregator.aggregate(library, records, generated_at=generated_at)
            content = output.render()
            if writer.dry_run:
                outcome.diff = writer.diff(output_path, content)
            outcome.result = writer.write(output_path, content)
            outcome.documents = output.documents
        except ConfigurationError:
            raise
        except DocMergeError as exc:
            self.logger.error("Library %s failed: %s", library.name, exc)
            outcome.error = exc
        except (OSError, UnicodeError) as exc:
            self.logger.error("Library %s failed: %s", library.name, exc)
            outcome.error = DocMergeError(f"{library.name}: {exc}")
        else:
            self.logger.info(
                "%s: %s (%d documents, %d skipped)",
                library.name,
                outcome.result.value if outcome.result else "unknown",
                outcome.documents,
                len(outcome.skipped),
            )
        return outcome

    def collect(
        self, library: LibrarySource, checkout: Path
    ) -> Tuple[List[DocumentRecord], List[SkippedDocument], List[str]]:
        """Enumerate and normalize the documents of ``library``.

        Returns the records, the skipped files and the patterns that matched nothing.
        """
        paths = self.enumerator.enumerate(checkout, library.doc_patterns, library.exclude)
        root = paths.root
        records: List[DocumentRecord] = []
        skipped: List[SkippedDocument] = []
        matched = 0
        for source_path in paths:
            matched += 1
            raw = (root / source_path).read_bytes()
            try:
                record = self.normalizer.normalize(source_path, raw, library=library, order=len(records))
            except DecodeError as exc:
                self.logger.warning("Skipping %s/%s: %s", library.name, exc.source_path, exc.reason)
                skipped.append(SkippedDocument(source_path=exc.source_path, reason=exc.reason))
                continue
            self.logger.debug("Normalized %s/%s", library.name, source_path)
            records.append(record)

        if matched == 0 and not library.allow_empty:
            patterns = ", ".join(library.doc_patterns)
            raise SourceNotFoundError(f"No documents matched for {library.name} ({patterns}) under {root}")
        return records, skipped, [error.pattern for error in paths.missing if error.pattern]

    def write_index(
        self,
        config: DocMergeConfig,
        output_dir: Path,
        index_path: Path,
        writer: Writer,
    ) -> WriteResult:
        """Render the manifest and write it through ``writer``."""
        builder = self.manifest_builder or ManifestBuilder(config.templates_dir)
        entries = builder.build(config.libraries)
        try:
            existing: Optional[str] = index_path.read_bytes().decode("utf-8", errors="replace")
        except FileNotFoundError:
            existing = None
        except OSError as exc:
            raise WriteError(index_path, exc) from exc
        content = builder.render(
            entries,
            output_dir=output_dir,
            index_path=index_path,
            title=config.title,
            existing=existing,
        )
        result = writer.write(index_path, content)
        self.logger.info("Index %s: %s", index_path, result.value)
        return result


__all__ = ["Pipeline"]
