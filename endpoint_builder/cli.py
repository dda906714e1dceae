"""
Deploy declared endpoints to API Gateway.

This command:
1. Loads the project manifest
2. Builds every endpoint of the stage in every region, concurrently
3. Optionally creates a stage deployment for each API that changed
4. Prints a summary of the deployed endpoints

Usage: endpoint-builder deploy --manifest project.yml --stage dev [--region us-east-1]
"""

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .builder import EndpointBuilder
from .config import Settings
from .deployer import EndpointDeployer, StageDeployer
from .errors import EndpointBuilderError
from .manifest import ManifestError, build_targets, load_manifest
from .models import EndpointOutcome

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='endpoint-builder',
        description='Provision API Gateway endpoints for Lambda functions')
    subparsers = parser.add_subparsers(dest='command', required=True)

    deploy = subparsers.add_parser('deploy', help='Deploy endpoints for a stage')
    deploy.add_argument('--manifest', required=True,
                        help='Path to the project manifest (YAML)')
    deploy.add_argument('--stage', required=True,
                        help='Stage to deploy endpoints to')
    deploy.add_argument('--region',
                        help='Only deploy to this region of the stage')
    deploy.add_argument('--alias',
                        help='Lambda alias to integrate with (default: stage variable)')
    deploy.add_argument('--deploy-stage', action='store_true',
                        help='Create an API Gateway deployment after the endpoints converge')
    deploy.add_argument('--verbose', action='store_true',
                        help='Enable debug logging')

    return parser.parse_args(argv)


def print_summary(outcomes: List[EndpointOutcome], console: Optional[Console] = None) -> None:
    console = console or Console()

    table = Table(title='Endpoint Deployment Summary')
    table.add_column('Endpoint', style='cyan')
    table.add_column('Region', style='blue')
    table.add_column('Status', style='green')
    table.add_column('URL / Error', style='magenta')

    for outcome in outcomes:
        target = outcome.target
        if outcome.ok:
            table.add_row(f"{outcome.deployed.method} {outcome.deployed.path}",
                          target.region.region, '✅ deployed', outcome.deployed.url)
        else:
            table.add_row(target.description, target.region.region,
                          '❌ failed', escape(str(outcome.error)))

    console.print(table)
    succeeded = sum(1 for outcome in outcomes if outcome.ok)
    console.print(f"\n[bold]Summary:[/bold] {succeeded}/{len(outcomes)} endpoints deployed")


def deploy(args: argparse.Namespace, settings: Settings) -> int:
    try:
        manifest = load_manifest(args.manifest)
        targets = build_targets(manifest, args.stage, region=args.region, alias=args.alias)
    except ManifestError as e:
        logger.error(f"❌ {e}")
        return 1

    if not targets:
        logger.warning(f"No endpoints declared for stage {args.stage}")
        return 0

    builder = EndpointBuilder(manifest['project'], settings=settings)
    outcomes = EndpointDeployer(builder).deploy(targets)

    if args.deploy_stage:
        try:
            StageDeployer(settings).deploy_stages(outcomes)
        except EndpointBuilderError as e:
            logger.error(f"❌ Stage deployment failed: {e}")
            print_summary(outcomes)
            return 1

    print_summary(outcomes)
    return 0 if all(outcome.ok for outcome in outcomes) else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    settings = Settings.from_env()
    if args.command == 'deploy':
        return deploy(args, settings)
    return 1


if __name__ == '__main__':
    sys.exit(main())
