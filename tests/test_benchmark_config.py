import pytest
from pydantic import ValidationError

from foambench.errors import ConfigurationError
from foambench.schemas.benchmark_config import (
    BenchmarkParameters,
    MESH_LEVELS,
    combination_label,
    mesh_cells_for_level,
    parse_node_list,
)


def test_mesh_level_table():
    assert tuple(MESH_LEVELS[1]) == (20, 25, 15, 15)
    assert tuple(MESH_LEVELS[2]) == (40, 50, 30, 30)
    assert tuple(MESH_LEVELS[3]) == (80, 100, 60, 60)
    assert tuple(MESH_LEVELS[4]) == (160, 200, 120, 120)


@pytest.mark.parametrize("level", [0, 5, -1])
def test_mesh_level_out_of_range(level):
    with pytest.raises(ConfigurationError):
        mesh_cells_for_level(level)


def test_parse_node_list():
    assert parse_node_list("1,2,4") == [1, 2, 4]
    assert parse_node_list("2") == [2]
    assert parse_node_list("4, 1") == [4, 1]  # order is kept


@pytest.mark.parametrize("value", ["", "1,x", ","])
def test_parse_node_list_rejects_garbage(value):
    with pytest.raises(ConfigurationError):
        parse_node_list(value)


def test_build_defaults(make_params):
    params = make_params()
    assert params.time_limit == "02:00:00"
    assert params.end_time is None
    assert params.sbatch_args == ""
    assert combination_label(params.nprocs, params.mesh_level) == "np16_ml3"


def test_build_converts_validation_errors(make_params):
    with pytest.raises(ConfigurationError, match="mesh_level"):
        make_params(mesh_level=5)
    with pytest.raises(ConfigurationError):
        make_params(nprocs=0)
    with pytest.raises(ConfigurationError):
        make_params(nodes=[])
    with pytest.raises(ConfigurationError):
        make_params(nodes=[1, 0])
    with pytest.raises(ConfigurationError):
        make_params(end_time=-1.0)
    with pytest.raises(ConfigurationError):
        make_params(time_limit="two hours")


def test_time_limit_formats(make_params):
    assert make_params(time_limit="00:30:00").time_limit == "00:30:00"
    assert make_params(time_limit="1-12:00:00").time_limit == "1-12:00:00"


def test_parameters_are_immutable(make_params):
    params = make_params()
    with pytest.raises(ValidationError):
        params.nprocs = 4


def test_with_overrides_revalidates(make_params):
    params = make_params()
    other = params.with_overrides(nprocs=4, mesh_level=1)
    assert (other.nprocs, other.mesh_level) == (4, 1)
    assert (params.nprocs, params.mesh_level) == (16, 3)
    with pytest.raises(ConfigurationError):
        params.with_overrides(mesh_level=9)
