"""
Build orchestrator.

Runs the build stages in order (read declarations, scan, extract, build the
tree, render) and gathers the non-fatal problems into a BuildReport.

Example:
    >>> orchestrator = BuildOrchestrator(Path("docs"))
    >>> report = orchestrator.build()
    >>> report.pages_written
    ['index.html', 'api/example_module.html', 'genindex.html', ...]
"""

from __future__ import annotations

from pathlib import Path

from quilldoc.config import BuildConfig
from quilldoc.errors import ConfigError
from quilldoc.extractor import DocExtractor
from quilldoc.logging import LogContext, get_logger
from quilldoc.models import BuildReport, ModuleDoc
from quilldoc.renderers import HtmlRenderer
from quilldoc.scanner import ScanResult, SourceScanner
from quilldoc.tree import ContentTreeBuilder

logger = get_logger(__name__)


class BuildOrchestrator:
    """Run one complete documentation build.

    Manifesto:
        One command, one pass, no caches.  Every run reads the declarations,
        imports the code and writes the whole site again, so the output
        always matches the sources on disk.

    Architecture:
        ::

            BuildOrchestrator.build()
                  │
                  ├──► ContentTreeBuilder.read()     MalformedHeadingError ✗
                  │
                  ├──► SourceScanner.scan()          ImportFailure → report
                  │
                  ├──► DocExtractor.extract()        (loaded modules only)
                  │
                  ├──► ContentTreeBuilder.build()    BrokenReferenceError ✗
                  │
                  └──► HtmlRenderer.render()         warnings → report

        ✗ = fatal, raised before any page is written

    Guardrails:
        - Do NOT write output before every reference is validated
          ✅ Broken references abort the build with nothing written
        - Do NOT abort on a module that fails to import
          ✅ Collect it in the report; the page shows a notice

    Tags:
        - orchestrator
        - build
        - pipeline
    """

    def __init__(
        self,
        source_dir: Path,
        output_dir: Path | None = None,
        config: BuildConfig | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            source_dir: Directory holding ``quilldoc.yaml`` and the content
            output_dir: Where to write HTML (overrides the configuration)
            config: Pre-loaded configuration (read from ``source_dir`` if None)
        """
        self.source_dir = Path(source_dir).resolve()
        self._output_dir = Path(output_dir).resolve() if output_dir is not None else None
        self._config = config

    @property
    def config(self) -> BuildConfig:
        if self._config is None:
            self._config = BuildConfig.load(self.source_dir)
        return self._config

    @property
    def output_dir(self) -> Path:
        if self._output_dir is not None:
            return self._output_dir
        return self.config.resolved_output_dir

    def build(self) -> BuildReport:
        """Run every stage.

        Returns:
            BuildReport with pages written and non-fatal problems

        Raises:
            ConfigError: Invalid configuration or output directory
            ContentError: Missing root document
            MalformedHeadingError: A title's adornment is too short
            BrokenReferenceError: A toctree entry or auto* target does not exist
            RenderError: Output could not be written
        """
        config = self.config
        output_dir = self.output_dir
        self._check_output_dir(output_dir)

        with LogContext(project=config.project):
            logger.info("build.started", source_dir=str(self.source_dir), output_dir=str(output_dir))

            scanner = SourceScanner(config.resolved_search_paths)
            builder = ContentTreeBuilder(config, scanner)
            content = builder.read()

            scan = scanner.scan(builder.module_names(content))
            modules = self.extract(scan)
            tree = builder.build(content, scan, modules)

            report = BuildReport(output_dir=output_dir)
            report.import_failures = list(scan.failures)
            report.modules_documented = list(modules)

            renderer = HtmlRenderer(config, tree, content, modules, scan.failures, scanner)
            report.pages_written = renderer.render(output_dir)
            report.warnings = list(content.warnings) + list(renderer.warnings)

            logger.info(
                "build.finished",
                pages=len(report.pages_written),
                modules=len(report.modules_documented),
                import_failures=len(report.import_failures),
                warnings=len(report.warnings),
            )
            return report

    def extract(self, scan: ScanResult) -> dict[str, ModuleDoc]:
        """Extract documentation from every successfully loaded module."""
        config = self.config
        extractor = DocExtractor(
            dialects=config.dialects,
            private_members=config.private_members,
            member_order=config.member_order,
        )
        return {name: extractor.extract(module) for name, module in scan.modules.items()}

    def _check_output_dir(self, output_dir: Path) -> None:
        if self.source_dir == output_dir or self.source_dir.is_relative_to(output_dir):
            raise ConfigError(
                f"Output directory {output_dir} contains the source directory; "
                "building would delete the sources"
            ).with_context(file=str(output_dir))
