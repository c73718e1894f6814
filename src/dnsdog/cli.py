"""
Command Line Interface for dnsdog
"""

import signal
import sys
from typing import Optional

import click

from .cache import CorrelationCache
from .config import ConfigManager
from .exceptions import DNSDogError
from .metrics import StatsdSink
from .utils import Colors, colorize, print_error, print_header, print_info, validate_cidr
from .utils.logger import get_logger, setup_logger
from .watcher import Watcher


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True, dir_okay=False),
              help='Configuration file path')
@click.option('--log-level', '-l', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              default=None, help='Log level')
@click.option('--log-file', type=click.Path(), help='Log file path')
@click.pass_context
def cli(ctx, config: Optional[str], log_level: Optional[str], log_file: Optional[str]):
    """dnsdog - DNS query and reply metrics for StatsD"""
    ctx.ensure_object(dict)

    try:
        config_manager = ConfigManager(config)
    except DNSDogError as e:
        print_error(f"Failed to load configuration: {e}")
        sys.exit(1)

    conf = config_manager.get_config()
    if log_level:
        conf.log_level = log_level.upper()
    if log_file:
        conf.log_file = log_file

    setup_logger(level=conf.log_level, log_file=conf.log_file)
    ctx.obj['logger'] = get_logger(__name__)
    ctx.obj['config_manager'] = config_manager
    ctx.obj['config'] = conf


@cli.command()
@click.option('--iface', '-i', help='Interface to listen on')
@click.option('--cidr', help='Listen on the interface that belongs to this network')
@click.option('--statsd', '-s', 'statsd_address', help='Statsd address (host:port)')
@click.option('--query/--no-query', default=None,
              help='Whether to tag question and answer metrics with the queried name')
@click.option('--ttl', type=click.FloatRange(min=0, min_open=True),
              help='Seconds to wait for a reply before forgetting a query')
@click.option('--pcap', 'pcap_file', type=click.Path(exists=True, dir_okay=False),
              help='Replay a capture file instead of listening live')
@click.option('--bpf-filter', '-f', help='BPF filter expression')
@click.pass_context
def watch(ctx, iface: Optional[str], cidr: Optional[str], statsd_address: Optional[str],
          query: Optional[bool], ttl: Optional[float], pcap_file: Optional[str], bpf_filter: Optional[str]):
    """Watch DNS traffic and send metrics to statsd"""
    config_manager = ctx.obj['config_manager']
    config = ctx.obj['config']
    logger = ctx.obj['logger']

    if cidr and not validate_cidr(cidr):
        print_error(f"Invalid CIDR: {cidr}")
        sys.exit(1)
    try:
        if cidr:
            config_manager.resolve_interface(cidr)
    except DNSDogError as e:
        print_error(str(e))
        sys.exit(1)

    # Override config with command line options
    if iface:
        config.capture.interface = iface
    if pcap_file:
        config.capture.pcap_file = pcap_file
    if bpf_filter:
        config.capture.bpf_filter = bpf_filter
    if statsd_address:
        config.statsd.address = statsd_address
    if query is not None:
        config.watcher.include_query = query
    if ttl:
        config.watcher.cache_ttl = ttl

    print_header("dnsdog Starting")
    print_info(f"Source: {config.capture.pcap_file or config.capture.interface}")
    print_info(f"Statsd: {config.statsd.address}")
    print_info(f"Reply timeout: {config.watcher.cache_ttl}s")
    print_info(f"Query names in tags: {config.watcher.include_query}")

    try:
        run_watch(config)
    except KeyboardInterrupt:
        print_info("Watching stopped by user")
    except DNSDogError as e:
        print_error(f"Watching failed: {e}")
        logger.debug("Watch error", exc_info=True)
        sys.exit(1)


def run_watch(config) -> None:
    """Wire capture, cache, sink and watcher together and run until the capture ends."""
    from .traffic import open_capture

    capture = open_capture(config.capture)
    sink = StatsdSink.from_address(
        config.statsd.address,
        namespace=config.statsd.namespace,
        constant_tags=config.statsd.constant_tags or None,
        buffered=config.statsd.buffered,
    )
    cache = CorrelationCache(ttl=config.watcher.cache_ttl,
                             cleanup_interval=config.watcher.cleanup_interval)
    watcher = Watcher(sink, cache=cache, include_query=config.watcher.include_query)

    def _signal_handler(signum, frame):
        get_logger(__name__).info(f"Received signal {signum}, stopping...")
        watcher.stop()
        capture.close()

    previous = {sig: signal.signal(sig, _signal_handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        with cache, sink:
            watcher.watch(capture)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


@cli.command()
@click.option('--output', '-o', type=click.Path(),
              default='dnsdog.yaml',
              help='Output configuration file path')
@click.pass_context
def generate_config(ctx, output: str):
    """Generate sample configuration file"""
    config_manager = ctx.obj['config_manager']

    try:
        config_manager.save_to_file(output)
        print_info(f"Configuration file generated: {output}")
    except OSError as e:
        print_error(f"Failed to generate configuration: {e}")
        sys.exit(1)


@cli.command()
def version():
    """Show version information"""
    from . import __version__
    print(f"{colorize('dnsdog', Colors.BOLD)} version {colorize(__version__, Colors.GREEN)}")


def main():
    """Main entry point"""
    cli()


if __name__ == '__main__':
    main()
