"""
skosnav command line

Commands:
1. analyze: probe an endpoint and write its analysis record
2. orphans: list concepts or collections outside every scheme
3. collections: list the collections of a scheme
4. roots: list the root concepts of a scheme, page by page
"""

import argparse
import asyncio
import json
import logging
import os
import sys

from dotenv import load_dotenv

from skosnav.capabilities.analysis import (
	EndpointAnalyzer,
	capabilities_from_analysis,
	language_priorities_from_analysis,
	load_analysis,
	save_analysis,
)
from skosnav.capabilities.prober import CapabilityProber
from skosnav.config.features import get_feature_flags
from skosnav.config.settings import NavigatorSettings
from skosnav.discovery.orphans import OrphanStrategy
from skosnav.discovery.progress import LoggingProgressObserver
from skosnav.schemas.domain import AuthType, EndpointAuth, SparqlEndpoint
from skosnav.schemas.errors import DiscoveryAborted, SparqlError
from skosnav.session import DiscoverySession
from skosnav.sparql.executor import SparqlExecutor
from skosnav.sparql.vocabulary import ResourceKind

logger = logging.getLogger(__name__)


def configure_logging() -> None:
	# Set SKOSNAV_DEBUG=true to enable debug logging
	debug_mode = os.getenv('SKOSNAV_DEBUG', 'false').lower() == 'true'
	logging.basicConfig(
		level=logging.DEBUG if debug_mode else logging.INFO,
		format='%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
		force=True,
		stream=sys.stderr,
	)
	logging.getLogger('aiohttp').setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(prog='skosnav', description='Capability-aware SKOS navigation over SPARQL endpoints')
	subparsers = parser.add_subparsers(dest='command', required=True)

	def endpoint_arguments(sub: argparse.ArgumentParser) -> None:
		sub.add_argument('endpoint', help='SPARQL query URL')
		sub.add_argument('--username', help='Basic auth user')
		sub.add_argument('--password', help='Basic auth password')
		sub.add_argument('--token', help='Bearer token')
		sub.add_argument('--api-key', help='API key (sent in --api-key-header)')
		sub.add_argument('--api-key-header', default='X-API-Key')

	def navigation_arguments(sub: argparse.ArgumentParser) -> None:
		sub.add_argument('--analysis', help='Analysis JSON written by "skosnav analyze"')
		sub.add_argument('--lang', help='Preferred label language')

	analyze = subparsers.add_parser('analyze', help='Probe an endpoint and write its analysis record')
	endpoint_arguments(analyze)
	analyze.add_argument('--output', '-o', default='analysis.json', help='Where to write the analysis JSON')

	orphans = subparsers.add_parser('orphans', help='List resources placed in no scheme')
	endpoint_arguments(orphans)
	navigation_arguments(orphans)
	orphans.add_argument('--kind', choices=[ResourceKind.CONCEPT.value, ResourceKind.COLLECTION.value], default='concept')
	orphans.add_argument('--strategy', choices=[s.value for s in OrphanStrategy], help='Override SKOSNAV_ORPHAN_STRATEGY')

	collections = subparsers.add_parser('collections', help='List the collections of a scheme')
	endpoint_arguments(collections)
	navigation_arguments(collections)
	collections.add_argument('scheme', help='Concept scheme URI')
	collections.add_argument('--nested', action='store_true', help='Include nested collections')

	roots = subparsers.add_parser('roots', help='List the root concepts of a scheme')
	endpoint_arguments(roots)
	navigation_arguments(roots)
	roots.add_argument('scheme', help='Concept scheme URI')
	roots.add_argument('--pages', type=int, default=1, help='Maximum number of pages to load')

	return parser


def endpoint_from_args(args: argparse.Namespace) -> SparqlEndpoint:
	auth = None
	if args.username:
		auth = EndpointAuth(type=AuthType.BASIC, username=args.username, password=args.password or '')
	elif args.token:
		auth = EndpointAuth(type=AuthType.BEARER, token=args.token)
	elif args.api_key:
		auth = EndpointAuth(type=AuthType.APIKEY, api_key=args.api_key, header_name=args.api_key_header)
	return SparqlEndpoint(url=args.endpoint, auth=auth)


def emit(data) -> None:
	print(json.dumps(data, ensure_ascii=False))


async def run_analyze(args: argparse.Namespace, executor: SparqlExecutor, settings: NavigatorSettings) -> int:
	prober = CapabilityProber(probe_timeout=settings.probe_timeout, concurrency=settings.probe_concurrency)
	analysis = await EndpointAnalyzer(executor, prober=prober, timeout=settings.query_timeout).analyze()
	path = save_analysis(analysis, args.output)
	logger.info(f"✅ Analysis of {args.endpoint} written to {path}")
	emit(analysis.model_dump(mode='json', by_alias=True))
	return 0


def open_session(args: argparse.Namespace, executor: SparqlExecutor, settings: NavigatorSettings) -> DiscoverySession:
	analysis = load_analysis(args.analysis) if args.analysis else None
	return DiscoverySession(
		executor,
		capabilities=capabilities_from_analysis(analysis, settings.analysis_max_age_days),
		settings=settings,
		flags=get_feature_flags(),
		preferred_language=args.lang,
		language_priorities=language_priorities_from_analysis(analysis),
		observer=LoggingProgressObserver(),
	)


async def run_orphans(args: argparse.Namespace, executor: SparqlExecutor, settings: NavigatorSettings) -> int:
	async with open_session(args, executor, settings) as session:
		result = await session.start_orphans(ResourceKind(args.kind), args.strategy)
	for uri in result.uris:
		emit({'uri': uri})
	if result.failed:
		logger.error(f"Orphan detection failed after partial results: {result.error}")
		return 1
	logger.info(f"✅ {len(result.uris)} orphan {args.kind}s ({result.strategy.value})")
	return 0


async def run_collections(args: argparse.Namespace, executor: SparqlExecutor, settings: NavigatorSettings) -> int:
	async with open_session(args, executor, settings) as session:
		snapshot = await session.start_collections(args.scheme)
		refs = await session.collection_discovery().to_refs(snapshot, include_nested=args.nested)
	for ref in refs:
		emit(ref.model_dump(mode='json', exclude_none=True))
	if snapshot.error:
		logger.error(f"Collection discovery failed after partial results: {snapshot.error}")
		return 1
	return 0


async def run_roots(args: argparse.Namespace, executor: SparqlExecutor, settings: NavigatorSettings) -> int:
	async with open_session(args, executor, settings) as session:
		continuation = None
		for _ in range(max(1, args.pages)):
			page = await session.paginator.load_page(args.scheme, continuation)
			for ref in page.items:
				emit(ref.model_dump(mode='json', exclude_none=True))
			continuation = page.continuation
			if not page.has_more:
				break
	return 0


COMMANDS = {
	'analyze': run_analyze,
	'orphans': run_orphans,
	'collections': run_collections,
	'roots': run_roots,
}


async def run(args: argparse.Namespace) -> int:
	settings = NavigatorSettings.from_env()
	flags = get_feature_flags()
	executor = SparqlExecutor(
		endpoint_from_args(args),
		timeout_seconds=settings.query_timeout,
		retries=settings.retries,
		xml_fallback=flags.xml_fallback_enabled,
	)
	try:
		return await COMMANDS[args.command](args, executor, settings)
	except SparqlError as e:
		logger.error(f"❌ {args.command} failed: {e}", exc_info=True)
		return 2
	except DiscoveryAborted as e:
		logger.warning(f"⚠️  {e}")
		return 130


def main(argv: list[str] | None = None) -> int:
	# .env.local first, then .env
	load_dotenv(dotenv_path='.env.local', override=False)
	load_dotenv(override=True)
	configure_logging()

	args = build_parser().parse_args(argv)
	try:
		return asyncio.run(run(args))
	except KeyboardInterrupt:
		logger.info("Interrupted")
		return 130


if __name__ == '__main__':
	sys.exit(main())
