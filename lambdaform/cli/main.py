"""Main CLI entrypoint for lambdaform."""

import json
import logging
import os
import sys
from dataclasses import replace
from typing import Any, Dict, Optional

import click

from ..errors import LambdaformError
from ..events import EventTypes, emit_event, get_status_from_events, read_events
from ..function import (
    IamRoleConstructor,
    LambdaProvider,
    Reconciler,
    ResourceSpec,
    RoleResolver,
    spec_from_inputs,
)
from ..manifest import load_manifest
from ..state import delete_instance, list_instances, purge_instance, read_instance, write_instance
from ..tags import base_tags, is_managed, parse_user_tags

DEFAULT_REGION = os.environ.get("AWS_REGION", "us-west-2")


def build_reconciler(instance: str, region: str) -> Reconciler:
    """Wire the boto3-backed collaborators for one instance."""
    return Reconciler(
        LambdaProvider(region=region),
        RoleResolver(IamRoleConstructor(region=region)),
        instance=instance,
        notify=lambda event_type, data: emit_event(instance, event_type, data),
    )


@click.group()
@click.option('--json', 'output_json', is_flag=True, help='Output machine-readable JSON')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def main(ctx, output_json, verbose):
    """Lambdaform - Reconcile AWS Lambda functions from a manifest."""
    ctx.ensure_object(dict)
    ctx.obj['json'] = output_json
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _json_output(data: Dict[str, Any]) -> None:
    """Output data as JSON."""
    click.echo(json.dumps(data, indent=None))


def _human_output(message: str) -> None:
    """Output human-readable message."""
    if not click.get_current_context().obj.get('json', False):
        click.echo(message)


def _fail(message: str, code: int = 1) -> None:
    if click.get_current_context().obj.get('json', False):
        _json_output({'error': message})
    else:
        _human_output(f"❌ {message}")
    sys.exit(code)


def _load_spec(manifest_path: str, user_tags: Optional[Dict[str, str]] = None):
    manifest = load_manifest(manifest_path)
    spec = spec_from_inputs(manifest.inputs, base_dir=manifest.base_dir)
    tags = base_tags(manifest.instance, {**spec.tags, **(user_tags or {})})
    return manifest.instance, replace(spec, tags=tags)


def _spec_summary(spec: ResourceSpec) -> Dict[str, Any]:
    return {
        'name': spec.name,
        'runtime': spec.runtime,
        'handler': spec.handler,
        'memory_size': spec.memory_size,
        'timeout': spec.timeout,
        'fingerprint': spec.fingerprint,
    }


@main.command()
@click.argument('manifest', default='.', type=click.Path(exists=True))
@click.option('--region', default=DEFAULT_REGION, help='AWS region')
@click.pass_context
def plan(ctx, manifest, region):
    """Show what deploy would do without calling AWS."""
    try:
        instance, spec = _load_spec(manifest)
        prior = read_instance(instance)
        decision = build_reconciler(instance, region).plan(spec, prior)
    except (LambdaformError, ValueError) as e:
        _fail(f"Plan failed: {e}")
        return

    if ctx.obj['json']:
        _json_output({'instance': instance, 'decision': decision.value, **_spec_summary(spec)})
    else:
        _human_output(f"📋 {instance}: {decision.value} ({spec.name})")


@main.command()
@click.argument('manifest', default='.', type=click.Path(exists=True))
@click.option('--region', default=DEFAULT_REGION, help='AWS region')
@click.option('--tag', 'tags', multiple=True, help='Extra tag key=value (repeatable)')
@click.pass_context
def deploy(ctx, manifest, region, tags):
    """Create, update or replace the function described by MANIFEST."""
    try:
        instance, spec = _load_spec(manifest, parse_user_tags(list(tags)))
    except (LambdaformError, ValueError) as e:
        _fail(f"Deployment failed: {e}")
        return

    try:
        prior = read_instance(instance)
        emit_event(instance, EventTypes.DEPLOY_START, {'name': spec.name, 'region': region})
        result = build_reconciler(instance, region).reconcile(spec, prior)
        write_instance(instance, result.instance)
        emit_event(instance, EventTypes.DONE, {'decision': result.decision.value, 'arn': result.arn})
    except (LambdaformError, ValueError) as e:
        emit_event(instance, EventTypes.ERROR, {'error': str(e)})
        _fail(f"Deployment failed: {e}")
        return

    if ctx.obj['json']:
        _json_output({'instance': instance, 'decision': result.decision.value, 'arn': result.arn})
    else:
        _human_output(f"🚀 {instance}: {result.decision.value}")
        _human_output(f"ARN: {result.arn}")


@main.command()
@click.argument('instance')
@click.option('--region', default=DEFAULT_REGION, help='AWS region')
@click.option('--name', help='Function name to delete when no state is recorded')
@click.option('--purge', is_flag=True, help='Also delete the instance event log')
@click.pass_context
def remove(ctx, instance, region, name, purge):
    """Remove the function recorded for INSTANCE."""
    try:
        prior = read_instance(instance)
        if prior is None and not name:
            _fail(f"Instance {instance} not found", code=2)
            return

        emit_event(instance, EventTypes.REMOVE_START, {'name': prior.name if prior else name})
        reconciler = build_reconciler(instance, region)
        if prior is not None:
            reconciler.teardown(prior)
        else:
            reconciler.remove(name)
        delete_instance(instance)
        emit_event(instance, EventTypes.REMOVE_DONE, {})
        if purge:
            purge_instance(instance)
    except (LambdaformError, ValueError) as e:
        _fail(f"Removal failed: {e}")
        return

    if ctx.obj['json']:
        _json_output({'instance': instance, 'removed': True})
    else:
        _human_output(f"🗑️  {instance}: removed")


@main.command()
@click.argument('instance')
@click.pass_context
def status(ctx, instance):
    """Show recorded state and last status of INSTANCE."""
    try:
        prior = read_instance(instance)
        events = read_events(instance)
    except (LambdaformError, ValueError) as e:
        _fail(str(e))
        return

    if prior is None and not events:
        _fail(f"Instance {instance} not found", code=2)
        return

    info = {
        'instance': instance,
        'status': get_status_from_events(instance),
        'name': prior.name if prior else None,
        'arn': prior.arn if prior else None,
        'role': prior.identity.name if prior and prior.identity else None,
        'managed': is_managed(prior.tags) if prior else False,
        'events': len(events),
    }
    if ctx.obj['json']:
        _json_output(info)
    else:
        for key, value in info.items():
            _human_output(f"{key}: {value}")


@main.command('list')
@click.pass_context
def list_cmd(ctx):
    """List instances with recorded state."""
    instances = list_instances()
    if ctx.obj['json']:
        _json_output({'instances': instances})
    elif not instances:
        _human_output("No instances recorded")
    else:
        for instance in instances:
            _human_output(instance)


if __name__ == '__main__':
    main()
