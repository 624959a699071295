"""
Command line entry point for FIPS geography elevation.
Handles argument parsing, logging setup and writing outputs.
"""
import sys
import argparse
import logging
from pathlib import Path

from fips_elevation import config
from fips_elevation.errors import ElevationError
from fips_elevation.utils import default_output_path, generate_log_filename, setup_logging


def parse_arguments(argv=None):
    """Parse and validate command line arguments."""
    parser = argparse.ArgumentParser(
        prog="fips-elevation",
        description="Elevation of US states, counties and census tracts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Mean elevation and map of Anne Arundel County, Maryland
  fips-elevation single --level county --geoid 24003 --zoom 10 --map anne_arundel.png

  # All counties in Maryland, written to CSV
  fips-elevation batch --level county --state 24 --output maryland_counties.csv

  # Tracts in Allegany County, Maryland
  fips-elevation batch --level tract --state 24 --county 001

  # Quiet mode (log to file only, no console output)
  fips-elevation batch --level county --state 41 --quiet
        """
    )

    def add_common(subparser):
        subparser.add_argument(
            '-y', '--year',
            type=int,
            default=config.DEFAULT_YEAR,
            help=f'Year of the geographic boundaries (default {config.DEFAULT_YEAR})'
        )
        subparser.add_argument(
            '-r', '--resolution',
            choices=config.VALID_RESOLUTIONS,
            default=config.DEFAULT_RESOLUTION,
            help='Cartographic boundary resolution'
        )
        subparser.add_argument(
            '-z', '--zoom',
            type=int,
            default=config.DEFAULT_ZOOM,
            help=f'Elevation tile zoom level, {config.MIN_ZOOM}-{config.MAX_ZOOM} (default {config.DEFAULT_ZOOM})'
        )
        subparser.add_argument(
            '-o', '--output',
            type=str,
            help='Output CSV path (defaults to a name built from the request)'
        )
        subparser.add_argument(
            '-q', '--quiet',
            action='store_true',
            help='Suppress stdout output (logs will still be written to file)'
        )
        subparser.add_argument(
            '--no-log-file',
            action='store_true',
            help='Do not write a log file'
        )

    subparsers = parser.add_subparsers(dest='command', required=True)

    single = subparsers.add_parser('single', help='Elevation surface of one geography')
    single.add_argument('-l', '--level', choices=config.VALID_LEVELS, required=True)
    single.add_argument('-g', '--geoid', type=str, required=True,
                        help='FIPS code: 2 digits for state, 5 for county, 11 for tract')
    single.add_argument('-m', '--map', type=str, help='Save the static map to this image file')
    single.add_argument('--html', type=str, help='Save an interactive map to this HTML file')
    add_common(single)

    batch = subparsers.add_parser('batch', help='Elevation of every county or tract in a state')
    batch.add_argument('-l', '--level', choices=config.BATCH_LEVELS, required=True)
    batch.add_argument('-s', '--state', type=str, required=True, help='Two-digit state FIPS code')
    batch.add_argument('-c', '--county', type=str, help='Three-digit county code (tract level only)')
    add_common(batch)

    args = parser.parse_args(argv)

    if args.command == 'batch' and args.county and args.level != 'tract':
        parser.error("--county can only be used with --level tract")

    return args


def run_single(args) -> Path:
    """Fetch one geography's elevation surface and write its samples and maps."""
    # Deferred so argument errors do not pay for the GIS stack import
    from fips_elevation.pipeline import get_elevation
    from fips_elevation.visualize import build_interactive_map, save_map

    surface = get_elevation(args.level, args.geoid, year=args.year,
                            resolution=args.resolution, zoom=args.zoom)

    output_file = Path(args.output) if args.output else default_output_path(args.level, args.geoid, ".csv")
    surface.elevation_samples.to_csv(output_file, index=False)
    logging.info(f"Wrote {len(surface.elevation_samples)} elevation samples to {output_file}")

    if args.map:
        save_map(surface.map, Path(args.map))
    if args.html:
        interactive = build_interactive_map(surface, args.zoom)
        interactive.save(args.html)
        logging.info(f"Saved interactive map: {args.html}")
    return output_file


def run_batch(args) -> Path:
    """Fetch elevations for every county or tract of a state and write them as CSV."""
    from fips_elevation.pipeline import get_elevation_batch

    records = get_elevation_batch(args.level, args.state, county=args.county, year=args.year,
                                  resolution=args.resolution, zoom=args.zoom)

    output_file = (Path(args.output) if args.output
                   else default_output_path(args.level, args.state, ".csv", county=args.county))
    records.to_csv(output_file, index=False)
    logging.info(f"Wrote {len(records)} {args.level} records to {output_file}")
    return output_file


def main(argv=None):
    """Main processing function"""
    args = parse_arguments(argv)

    if args.command == 'single':
        log_file = None if args.no_log_file else generate_log_filename(args.level, args.geoid)
    else:
        log_file = None if args.no_log_file else generate_log_filename(args.level, args.state, county=args.county)
    setup_logging(log_file, args.quiet)

    logging.info("FIPS Geography Elevation")
    logging.info("=" * 50)
    if log_file:
        logging.info(f"Log file: {log_file}")

    try:
        if args.command == 'single':
            run_single(args)
        else:
            run_batch(args)
    except ElevationError as e:
        where = f" ({e.parameter})" if e.parameter else ""
        logging.error(f"Failed{where}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
