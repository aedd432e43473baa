"""
Tests for change detection and the reconcile decision.
"""

from dataclasses import replace

from lambdaform.function import (
    Decision,
    IdentityReference,
    PriorInstance,
    ResourceSpec,
    decide,
    has_config_changed,
    has_identity_changed,
    normalized_config,
)

ROLE = IdentityReference(name="fn-a-execution-role", arn="arn:aws:iam::123:role/fn-a-execution-role", managed=True)


def make_spec(**kw):
    base = dict(
        name="fn-a",
        code=("/work/src",),
        fingerprint="h1",
        description="demo",
        handler="index.handler",
        runtime="nodejs20.x",
        memory_size=512,
        timeout=30,
        environment={"STAGE": "dev"},
        tags={"team": "core"},
        identity=ROLE,
    )
    base.update(kw)
    return ResourceSpec(**base)


def make_prior(spec=None, **kw):
    prior = PriorInstance.from_spec(spec or make_spec(), arn="id-1")
    return replace(prior, **kw) if kw else prior


def test_no_prior_deploys():
    assert decide(make_spec(), None) is Decision.DEPLOY
    assert has_config_changed(make_spec(), None)
    assert has_identity_changed(make_spec(), None)


def test_identical_state_is_noop():
    spec = make_spec()
    assert decide(spec, make_prior(spec)) is Decision.NOOP


def test_name_change_replaces_even_with_other_changes():
    prior = make_prior()
    current = make_spec(name="fn-b", memory_size=2048, fingerprint="h9", identity=None)
    assert decide(current, prior) is Decision.REPLACE


def test_environment_only_change_is_noop():
    prior = make_prior()
    current = make_spec(environment={"STAGE": "prod", "NEW": "1"})
    assert decide(current, prior) is Decision.NOOP


def test_memory_change_deploys():
    prior = make_prior()
    assert decide(make_spec(memory_size=1024), prior) is Decision.DEPLOY


def test_fingerprint_change_deploys():
    prior = make_prior()
    assert decide(make_spec(fingerprint="h2"), prior) is Decision.DEPLOY


def test_tag_change_deploys():
    prior = make_prior()
    assert decide(make_spec(tags={"team": "other"}), prior) is Decision.DEPLOY


def test_aux_file_change_deploys():
    prior = make_prior()
    assert decide(make_spec(code=("/work/src", "/work/shim.js")), prior) is Decision.DEPLOY


def test_identity_compared_by_name_only():
    prior = make_prior()
    recreated = replace(ROLE, arn="arn:aws:iam::123:role/recreated")
    assert not has_identity_changed(make_spec(identity=recreated), prior)
    assert decide(make_spec(identity=recreated), prior) is Decision.NOOP


def test_identity_swap_deploys():
    prior = make_prior()
    other = IdentityReference(name="shared-role", arn="arn:aws:iam::123:role/shared-role")
    assert has_identity_changed(make_spec(identity=other), prior)
    assert decide(make_spec(identity=other), prior) is Decision.DEPLOY


def test_normalized_config_fields():
    config = normalized_config(make_spec())
    assert "environment" not in config
    assert "identity" not in config
    assert config["code"] == ["/work/src"]
    assert set(config) == {
        "name", "description", "handler", "code", "runtime",
        "memory_size", "timeout", "fingerprint", "tags",
    }


def test_prior_round_trips_through_dict():
    prior = make_prior()
    restored = PriorInstance.from_dict(prior.to_dict())
    assert restored == prior
    assert decide(make_spec(), restored) is Decision.NOOP
