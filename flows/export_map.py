"""Export the Seismic Lands choropleth as a standalone HTML page.

The flow loads the regional statistics and the boundaries, joins them,
classifies the chosen attribute and writes the folium map.

Run with ``python -m flows.export_map``. Flags:

    --settings PATH     settings YAML (default config/settings.yml)
    --attribute NAME    attribute to map (default: first configured)
    --scheme NAME       natural_breaks or quantile
    --output PATH       HTML file to write
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from seismic.classify import Scheme
from seismic.config import load_settings, project_root
from seismic.join import join_records
from seismic.loader import DataLoadError, load_sources
from seismic.render import breakpoint_labels, build_map
from seismic.session import MapSession

LOGGER = logging.getLogger(__name__)

DEFAULT_OUTPUT = project_root() / "output" / "seismic_lands.html"


@dataclass
class CliArgs:
    settings: Optional[Path] = None
    attribute: Optional[str] = None
    scheme: Optional[str] = None
    output: Path = DEFAULT_OUTPUT


def parse_args(argv: Optional[Iterable[str]] = None) -> CliArgs:
    parser = argparse.ArgumentParser(description="Export the Seismic Lands choropleth to HTML")
    parser.add_argument("--settings", type=Path, help="Settings YAML file")
    parser.add_argument("--attribute", help="Attribute to map")
    parser.add_argument("--scheme", choices=[s.value for s in Scheme], help="Classification scheme")
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT, help="HTML file to write")
    parsed = parser.parse_args(argv)
    return CliArgs(
        settings=parsed.settings,
        attribute=parsed.attribute,
        scheme=parsed.scheme,
        output=parsed.output,
    )


def run(args: CliArgs) -> Path:
    settings = load_settings(args.settings)
    if args.scheme:
        settings.scheme = args.scheme

    sources = load_sources(settings)
    features = join_records(sources.features, sources.rows, settings.attributes, settings.key)
    session = MapSession(features, settings, attribute=args.attribute)

    classification = session.classification
    LOGGER.info(
        "Classified %s (%s): %s",
        session.attribute,
        classification.scheme.value,
        ", ".join(breakpoint_labels(classification)) or "no data",
    )

    fmap = build_map(features, session.attribute, classification, settings)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    fmap.save(str(args.output))
    LOGGER.info("Wrote map to %s", args.output)
    return args.output


def main(argv: Optional[Iterable[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s - %(message)s")
    args = parse_args(argv)
    try:
        run(args)
    except (DataLoadError, ValueError) as exc:
        LOGGER.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
