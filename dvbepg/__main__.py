"""
dvbepg Command Line Interface

Usage:
    python -m dvbepg [-i FILE] [-f FILE] [-t TIMEOUT] [-o OFFSET] [options]

Examples:
    # Decode sections read from a demux device, stop after 10s of silence
    python -m dvbepg -i /dev/dvb/adapter0/demux0 -t 10 -f guide.xml

    # Decode a saved section dump
    python -m dvbepg -i eit.bin > guide.xml

    # Decode a raw transport stream recording
    python -m dvbepg --ts -i recording.ts -f guide.xml

    # Now/next for this multiplex only, with channel aliases
    python -m dvbepg -m -c chanidents -i eit.bin
"""

import argparse
import logging
import sys

from . import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='dvbepg',
        description='Dump DVB EIT programme information as XMLTV',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-i', '--input', default='-',
                        help='Read sections from file/device (default: stdin)')
    parser.add_argument('-f', '--output',
                        help='Write output to file instead of stdout')
    parser.add_argument('-t', '--timeout', type=float, default=10.0,
                        help='Stop after TIMEOUT seconds of no new data (default: 10)')
    parser.add_argument('-o', '--offset', type=int, default=0,
                        help='Time offset in hours from -12 to 12')
    parser.add_argument('-c', '--chanidents', nargs='?', const='chanidents',
                        help="Use channel identifiers from file (default file: 'chanidents')")
    parser.add_argument('--channels-conf', default='channels.conf',
                        help='[cst]zap channel list for <channel> output (default: channels.conf)')
    parser.add_argument('-d', '--invalid-dates', action='store_true',
                        help='Output events with invalid dates')
    parser.add_argument('-u', '--updates', action='store_true',
                        help='Output updated events (repeats information)')
    parser.add_argument('-e', '--encoding',
                        help='Use this codec instead of the ISO 6937 default table')
    parser.add_argument('--version-policy', choices=['direct', 'serial'], default='direct',
                        help='Version comparison: direct, or serial (5-bit wraparound)')
    parser.add_argument('--ts', action='store_true',
                        help='Input is a raw transport stream; extract PID 0x12')
    parser.add_argument('-s', '--silent', action='store_true',
                        help='No status output')
    parser.add_argument('--dashboard', action='store_true',
                        help='Show a live decoding dashboard on stderr (requires rich)')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='More log output (repeat for debug)')

    tables = parser.add_mutually_exclusive_group()
    tables.add_argument('-n', dest='tables', action='store_const', const='now-next',
                        help='Now/next info only')
    tables.add_argument('-m', dest='tables', action='store_const', const='now-next-actual',
                        help='Current multiplex now/next only')
    tables.add_argument('-p', dest='tables', action='store_const', const='now-next-other',
                        help='Other multiplex now/next only')

    return parser


def main() -> int:
    """Main entry point."""
    from .Channels import load_chanidents, read_zap_channels
    from .Grabber import EPGGrabber
    from .Source import open_input
    from .TransportStream import TSSectionSource
    from .XMLTV import XMLTVWriter
    from .config import DecoderConfig
    from .context import DecodeContext
    from .exceptions import SectionTooLargeError

    args = build_parser().parse_args()

    level = logging.WARNING - 10 * args.verbose
    if args.silent:
        level = logging.ERROR
    level = max(level, logging.DEBUG)

    try:
        config = DecoderConfig.with_table_filter(
            args.tables or 'all',
            time_offset=args.offset,
            emit_updates=args.updates,
            include_invalid_dates=args.invalid_dates,
            default_encoding=args.encoding,
            version_policy=args.version_policy,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.timeout <= 0:
        print("Error: Invalid timeout value", file=sys.stderr)
        return 1

    channel_ids = load_chanidents(args.chanidents) if args.chanidents else {}
    context = DecodeContext(config, channel_ids=channel_ids)

    dashboard = None
    if args.dashboard:
        try:
            from .dashboard import DashboardLogHandler, EPGDashboard
        except ImportError as e:
            print(f"Error: Rich library required for dashboard: {e}", file=sys.stderr)
            print("Install with: pip install rich", file=sys.stderr)
            return 1
        dashboard = EPGDashboard(context.stats, channel_ident=context.channel_ident)
        logging.basicConfig(level=level, handlers=[DashboardLogHandler(dashboard, level)])
    else:
        logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')

    try:
        input_source = open_input(args.input, args.timeout)
    except OSError as e:
        print(f"Error: Unable to get event data from multiplex: {e}", file=sys.stderr)
        return 1
    source = TSSectionSource(input_source) if args.ts else input_source

    try:
        output = open(args.output, 'w', encoding='utf-8') if args.output else sys.stdout
    except OSError as e:
        print(f"Error: Can't write file {args.output}: {e}", file=sys.stderr)
        input_source.close()
        return 1

    def status(stats):
        if dashboard is not None:
            dashboard.update(stats)
        elif not args.silent:
            print(f"\r {stats.status_line()}", end='', file=sys.stderr, flush=True)

    grabber = EPGGrabber(source, context, on_progress=status)
    result = 0

    if dashboard is not None:
        dashboard.start()
    try:
        with XMLTVWriter(output, context.channel_ident) as xmltv:
            for service_id, name in read_zap_channels(args.channels_conf):
                xmltv.write_channel(service_id, name)
            try:
                for event in grabber.run():
                    xmltv.write_programme(event)
                    if dashboard is not None:
                        dashboard.add_programme(event)
            except KeyboardInterrupt:
                pass
            except SectionTooLargeError as e:
                print(f"\nError: {e}", file=sys.stderr)
                result = 1
            except OSError as e:
                print(f"\nError reading input: {e}", file=sys.stderr)
                result = 1
    finally:
        if dashboard is not None:
            dashboard.stop()
        input_source.close()
        if output is not sys.stdout:
            output.close()

    if dashboard is None and not args.silent:
        print(file=sys.stderr)

    return result


if __name__ == '__main__':
    sys.exit(main())
