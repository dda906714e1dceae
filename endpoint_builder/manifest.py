"""
Load the project manifest that declares stages, regions and endpoints.

Example:

    project: acme
    stages:
      dev:
        - region: us-east-1
          restApiId: abc123
          iamRoleArnLambda: arn:aws:iam::123456789012:role/acme-dev-lambda
    functions:
      users/list:
        endpoints:
          - path: users/list
            method: GET
            authorizationType: NONE
            apiKeyRequired: false
            requestTemplates: {}
            requestParameters: {}
            responses:
              default:
                statusCode: "200"

Only the overall shape is checked here; endpoint fields are validated
per endpoint when it is built.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import best_match

from .models import Credentials, DeployTarget, RegionContext

logger = logging.getLogger(__name__)

MANIFEST_SCHEMA = {
    'type': 'object',
    'required': ['project', 'stages', 'functions'],
    'properties': {
        'project': {'type': 'string', 'minLength': 1},
        'stages': {
            'type': 'object',
            'additionalProperties': {
                'type': 'array',
                'items': {
                    'type': 'object',
                    'required': ['region', 'restApiId', 'iamRoleArnLambda'],
                    'properties': {
                        'region': {'type': 'string'},
                        'restApiId': {'type': 'string'},
                        'iamRoleArnLambda': {'type': 'string'},
                        'profile': {'type': 'string'},
                    },
                },
            },
        },
        'functions': {
            'type': 'object',
            'additionalProperties': {
                'type': 'object',
                'properties': {
                    'endpoints': {'type': 'array', 'items': {'type': 'object'}},
                },
            },
        },
    },
}


class ManifestError(ValueError):
    """The manifest file is missing or does not have the expected shape."""


def load_manifest(path: Union[str, Path]) -> Dict[str, Any]:
    """Read and shape-check a YAML project manifest."""
    manifest_path = Path(path)
    if not manifest_path.exists():
        raise ManifestError(f"Manifest not found: {manifest_path}")

    logger.info(f"Loading manifest from {manifest_path}")
    with open(manifest_path, 'r', encoding='utf-8') as f:
        try:
            manifest = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ManifestError(f"Invalid YAML in {manifest_path}: {e}") from e

    validate_manifest(manifest or {})
    return manifest


def validate_manifest(manifest: Dict[str, Any]) -> None:
    error = best_match(Draft202012Validator(MANIFEST_SCHEMA).iter_errors(manifest))
    if error is not None:
        location = '.'.join(str(part) for part in error.path) or '<root>'
        raise ManifestError(f"Invalid manifest at {location}: {error.message}")


def region_contexts(manifest: Dict[str, Any], stage: str,
                    region: Optional[str] = None) -> List[RegionContext]:
    """Target regions of a stage, optionally narrowed to one region."""
    stages = manifest.get('stages', {})
    if stage not in stages:
        raise ManifestError(f"Stage {stage} does not exist in your project")

    regions = []
    for entry in stages[stage]:
        if region and entry['region'] != region:
            continue
        credentials = None
        if entry.get('profile'):
            credentials = Credentials(profile_name=entry['profile'])
        regions.append(RegionContext(
            region=entry['region'],
            rest_api_id=entry['restApiId'],
            execution_role_arn=entry['iamRoleArnLambda'],
            credentials=credentials,
        ))

    if region and not regions:
        raise ManifestError(f'Region "{region}" does not exist in stage "{stage}"')
    return regions


def build_targets(manifest: Dict[str, Any], stage: str, region: Optional[str] = None,
                  alias: Optional[str] = None) -> List[DeployTarget]:
    """One DeployTarget per declared endpoint per target region."""
    regions = region_contexts(manifest, stage, region)

    targets = []
    for function_name, function in (manifest.get('functions') or {}).items():
        for endpoint in (function or {}).get('endpoints') or []:
            declared = dict(endpoint)
            declared.setdefault('function', function_name)
            for region_ctx in regions:
                targets.append(DeployTarget(endpoint=declared, region=region_ctx,
                                            stage=stage, alias=alias))

    logger.info(
        f"Found {len(targets)} endpoint target(s) for stage {stage} in {len(regions)} region(s)")
    return targets
