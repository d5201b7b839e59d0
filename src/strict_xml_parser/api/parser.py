"""Public parsing API.

Module-level :func:`parse` and :func:`parse_file` cover one-off parsing;
:class:`XmlParser` holds a configuration for repeated use and keeps simple
usage statistics.
"""

import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from ..parsing.grammar import XmlGrammarParser
from ..shared.config import ParserConfig
from ..shared.errors import XmlError
from ..shared.logging import CorrelationLogger, elapsed_ms, get_logger
from ..tree.nodes import XmlDocument

PathLike = Union[str, Path]


def _effective_config(config: Optional[ParserConfig], options: Dict[str, Any]) -> ParserConfig:
    config = config or ParserConfig()
    if options:
        config = config.override(**options)
    return config


def _run_parse(text: str, config: ParserConfig, logger: CorrelationLogger) -> XmlDocument:
    if not isinstance(text, str):
        raise TypeError(f"parse() expects str input, got {type(text).__name__}")

    start_time = time.perf_counter()
    logger.info("Starting parse operation", extra={"input_length": len(text)})
    try:
        document = XmlGrammarParser(text, config).parse()
    except XmlError as e:
        logger.info(
            "Input is not well-formed",
            extra={
                "error_code": e.code.value,
                "line": e.line,
                "column": e.column,
                "processing_time_ms": elapsed_ms(start_time),
            },
        )
        raise

    logger.info(
        "Parse operation completed",
        extra={
            "element_count": sum(1 for _ in document.iter_elements()),
            "processing_time_ms": elapsed_ms(start_time),
        },
    )
    return document


def parse(text: str, config: Optional[ParserConfig] = None, **options: Any) -> XmlDocument:
    """Parse an XML document, enforcing well-formedness.

    Args:
        text: XML document text
        config: Parser configuration, defaults to :class:`ParserConfig`
        **options: Individual :class:`ParserConfig` fields overriding ``config``

    Returns:
        The parsed document

    Raises:
        XmlError: If the document is not well-formed
        TypeError: If ``text`` is not a str
        ConfigValidationError: If an option is unknown or invalid

    Examples:
        >>> document = parse('<root><item id="1">Hello</item></root>')
        >>> document.root.find('item').get_attribute('id')
        '1'

        >>> parse('<a><!--hi--></a>', preserve_comments=True).root.children[0].content
        'hi'
    """
    effective = _effective_config(config, options)
    logger = get_logger(__name__, effective.correlation_id, "parse")
    return _run_parse(text, effective, logger)


def _read_file(path: PathLike, encoding: str) -> str:
    # newline="" leaves line endings to the parser's own normalisation.
    with open(path, encoding=encoding, newline="") as f:
        return f.read()


def parse_file(
    file_path: PathLike,
    config: Optional[ParserConfig] = None,
    encoding: str = "utf-8",
    **options: Any,
) -> XmlDocument:
    """Read a file and parse its contents.

    Args:
        file_path: Path to the XML file
        config: Parser configuration
        encoding: Text encoding of the file
        **options: Individual :class:`ParserConfig` fields overriding ``config``

    Returns:
        The parsed document

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not valid in ``encoding``
        XmlError: If the document is not well-formed
    """
    effective = _effective_config(config, options)
    logger = get_logger(__name__, effective.correlation_id, "parse_file")
    logger.info("Reading XML file", extra={"file_path": str(file_path), "encoding": encoding})
    return _run_parse(_read_file(file_path, encoding), effective, logger)


class XmlParser:
    """Reusable parser bound to one configuration.

    Examples:
        >>> parser = XmlParser(preserve_comments=True, sort_attributes=True)
        >>> parser.parse('<a z="1" b="2"/>').root.attributes
        {'b': '2', 'z': '1'}
        >>> parser.statistics["total_parses"]
        1
    """

    def __init__(self, config: Optional[ParserConfig] = None, **options: Any) -> None:
        self.config = _effective_config(config, options)
        self.logger = get_logger(__name__, self.config.correlation_id, "xml_parser")

        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0

    def parse(self, text: str) -> XmlDocument:
        """Parse ``text`` with this parser's configuration."""
        return self._track(lambda: _run_parse(text, self.config, self.logger))

    def parse_file(self, file_path: PathLike, encoding: str = "utf-8") -> XmlDocument:
        """Read and parse a file with this parser's configuration."""
        return self._track(
            lambda: _run_parse(_read_file(file_path, encoding), self.config, self.logger)
        )

    def reconfigure(self, **options: Any) -> None:
        """Replace individual configuration options for subsequent parses."""
        self.config = self.config.override(**options)
        self.logger = get_logger(__name__, self.config.correlation_id, "xml_parser")
        self.logger.info("Parser reconfigured", extra={"options": sorted(options)})

    def _track(self, run: Callable[[], XmlDocument]) -> XmlDocument:
        start_time = time.perf_counter()
        self._parse_count += 1
        try:
            document = run()
        finally:
            self._total_processing_time += elapsed_ms(start_time)
        self._successful_parses += 1
        return document

    @property
    def statistics(self) -> Dict[str, Any]:
        """Usage statistics across all parses made with this instance."""
        return {
            "total_parses": self._parse_count,
            "successful_parses": self._successful_parses,
            "failed_parses": self._parse_count - self._successful_parses,
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
        }

    def reset_statistics(self) -> None:
        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0
