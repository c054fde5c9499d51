"""Parsing OpenSSL-style configuration text.

Both server.csr.cnf and v3.ext use the OpenSSL config syntax: optional
``[section]`` headers followed by ``key = value`` lines. Lines before the
first header belong to the unnamed default section.
"""

import configparser

DEFAULT_SECTION = "default"


def parse_openssl_config(text: str) -> dict[str, dict[str, str]]:
    """Parse config text into ``{section: {key: value}}``.

    Keys keep their case (``emailAddress``, ``DNS.1``). Values are taken
    verbatim after the first ``=``, without interpolation.

    Raises:
        ValueError: If the text is not valid config syntax
    """
    parser = configparser.ConfigParser(
        delimiters=("=",),
        comment_prefixes=("#", ";"),
        inline_comment_prefixes=("#",),
        interpolation=None,
        strict=False,
        default_section="\0",
    )
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    try:
        parser.read_string(f"[{DEFAULT_SECTION}]\n{text}")
    except configparser.Error as e:
        raise ValueError(f"invalid OpenSSL config: {e}") from e

    return {section: dict(parser.items(section)) for section in parser.sections()}
