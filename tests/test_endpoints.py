import pytest

from qbremote.endpoints import (
    ALL_SELECTOR_V2,
    HttpMethod,
    Operation,
    Payload,
    requirement,
    resolve,
)
from qbremote.exceptions import ApiNotSupported, UnsupportedOperation
from qbremote.types import (
    ApiGeneration,
    ApiVersion,
    OperationRequirement,
    ServerCapability,
)


V1 = ServerCapability(ApiGeneration.V1, ApiVersion(1, 18, 0))
V2_OLD = ServerCapability(ApiGeneration.V2, ApiVersion(2, 0, 0))
V2_NEW = ServerCapability(ApiGeneration.V2, ApiVersion(2, 8, 3))


def _resolvable(operation: Operation, generation: ApiGeneration) -> bool:
    try:
        resolve(operation, generation)
    except UnsupportedOperation:
        return False
    return True


@pytest.mark.parametrize("operation", list(Operation))
def test_every_operation_has_an_endpoint(operation):
    assert _resolvable(operation, ApiGeneration.V1) or _resolvable(
        operation, ApiGeneration.V2
    )


@pytest.mark.parametrize("operation", list(Operation))
def test_requirement_matches_table(operation):
    # an operation allowed on v1 must have a v1 endpoint
    if requirement(operation).is_satisfied_by(V1):
        assert _resolvable(operation, ApiGeneration.V1)
    if requirement(operation).is_satisfied_by(V2_NEW):
        assert _resolvable(operation, ApiGeneration.V2)


@pytest.mark.parametrize("operation", list(Operation))
@pytest.mark.parametrize("generation", list(ApiGeneration))
def test_resolve_is_deterministic(operation, generation):
    if not _resolvable(operation, generation):
        return
    assert resolve(operation, generation) == resolve(operation, generation)


def test_pause_all_differs_by_generation():
    v1 = resolve(Operation.PAUSE_ALL, ApiGeneration.V1)
    assert v1.path == "/command/pauseAll"
    assert v1.method == HttpMethod.POST
    assert v1.payload == Payload.NONE
    assert not v1.fixed

    v2 = resolve(Operation.PAUSE_ALL, ApiGeneration.V2)
    assert v2.path == "/api/v2/torrents/pause"
    assert v2.fixed == {"hashes": ALL_SELECTOR_V2}


def test_legacy_pause_takes_one_hash_per_request():
    spec = resolve(Operation.PAUSE, ApiGeneration.V1)
    assert spec.per_item
    assert spec.fields == {"hashes": "hash"}


def test_delete_with_data_is_a_path_on_v1_and_a_flag_on_v2():
    assert resolve(Operation.DELETE_WITH_DATA, ApiGeneration.V1).path == (
        "/command/deletePerm"
    )
    v2 = resolve(Operation.DELETE_WITH_DATA, ApiGeneration.V2)
    assert v2.path == "/api/v2/torrents/delete"
    assert v2.fixed == {"deleteFiles": "true"}


@pytest.mark.parametrize(
    "operation",
    [
        Operation.RECHECK_ALL,
        Operation.DELETE_ALL,
        Operation.REANNOUNCE,
        Operation.GET_CATEGORIES,
        Operation.GET_PEER_LOG,
        Operation.RSS_GET_RULES,
    ],
)
def test_v2_only_operations(operation):
    assert not requirement(operation).is_satisfied_by(V1)
    with pytest.raises(UnsupportedOperation) as exc_info:
        resolve(operation, ApiGeneration.V1)
    assert isinstance(exc_info.value, ApiNotSupported)
    assert exc_info.value.generation == ApiGeneration.V1


def test_legacy_only_operation():
    required = requirement(Operation.GET_MIN_API_VERSION)
    assert required.is_satisfied_by(V1)
    assert not required.is_satisfied_by(V2_OLD)
    assert not required.is_satisfied_by(V2_NEW)

    with pytest.raises(ApiNotSupported) as exc_info:
        resolve(Operation.GET_MIN_API_VERSION, ApiGeneration.V2)
    assert exc_info.value.required == required
    assert exc_info.value.actual is None

    with pytest.raises(ApiNotSupported) as exc_info:
        resolve(Operation.GET_MIN_API_VERSION, ApiGeneration.V2, actual=V2_NEW)
    assert exc_info.value.actual == V2_NEW


@pytest.mark.parametrize(
    "operation, old_ok, new_ok",
    [
        (Operation.REANNOUNCE, False, True),
        (Operation.ADD_CATEGORY_WITH_SAVE_PATH, False, True),
        (Operation.EDIT_CATEGORY, False, True),
        (Operation.GET_CATEGORIES, False, True),
        (Operation.PAUSE, True, True),
    ],
)
def test_minimum_versions(operation, old_ok, new_ok):
    assert requirement(operation).is_satisfied_by(V2_OLD) is old_ok
    assert requirement(operation).is_satisfied_by(V2_NEW) is new_ok


class TestOperationRequirement:
    def test_newer_generation_satisfies(self):
        required = OperationRequirement(ApiGeneration.V1, ApiVersion(1, 99, 0))
        assert required.is_satisfied_by(V2_OLD)

    def test_older_generation_does_not_satisfy(self):
        assert not OperationRequirement(ApiGeneration.V2).is_satisfied_by(V1)

    def test_version_boundary(self):
        required = OperationRequirement(ApiGeneration.V2, ApiVersion(2, 0, 2))
        exact = ServerCapability(ApiGeneration.V2, ApiVersion(2, 0, 2))
        below = ServerCapability(ApiGeneration.V2, ApiVersion(2, 0, 1))
        assert required.is_satisfied_by(exact)
        assert not required.is_satisfied_by(below)

    def test_maximum_generation(self):
        required = OperationRequirement(
            ApiGeneration.V1, maximum_generation=ApiGeneration.V1
        )
        assert required.is_satisfied_by(V1)
        assert not required.is_satisfied_by(V2_NEW)
        assert str(required) == "API V1 only"
