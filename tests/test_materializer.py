import pytest

from foambench.errors import ConfigurationError
from foambench.schemas.benchmark_config import BenchmarkParameters, MESH_LEVELS
from foambench.templates.materializer import DEFAULT_TEMPLATE_DIR, materialize_case


def _block_counts(text):
    """(nx ny 1) tuples of the hex blocks, in file order."""
    counts = []
    for line in text.splitlines():
        line = line.strip()
        if line.startswith("hex"):
            inner = line.split(")")[1].strip().lstrip("(")
            counts.append(tuple(int(v) for v in inner.split()))
    return counts


@pytest.mark.parametrize("level", [1, 2, 3, 4])
def test_mesh_placeholders_filled_per_level(make_params, level):
    params = make_params(mesh_level=level)
    workspace = materialize_case(params)

    text = (workspace.root / "system" / "blockMeshDict").read_text()
    assert "__" not in text.split("vertices")[1]
    xin, xout, yup, ylow = MESH_LEVELS[level]
    assert _block_counts(text) == [(xin, yup, 1), (xout, yup, 1), (xout, ylow, 1)]


def test_nprocs_placeholder(make_params):
    workspace = materialize_case(make_params(nprocs=8))
    text = (workspace.root / "system" / "decomposeParDict").read_text()
    assert "numberOfSubdomains 8;" in text
    assert "__NPROCS__" not in text


def test_copies_whole_case(make_params):
    workspace = materialize_case(make_params())
    for rel in ["0/U", "0/p", "constant/transportProperties", "system/fvSchemes", "system/fvSolution"]:
        assert (workspace.root / rel).is_file()


def test_end_time_default_kept(make_params):
    workspace = materialize_case(make_params())
    text = (workspace.root / "system" / "controlDict").read_text()
    assert "endTime         0.1;" in text


def test_end_time_override(make_params):
    workspace = materialize_case(make_params(end_time=0.02))
    text = (workspace.root / "system" / "controlDict").read_text()
    assert "endTime         0.02;" in text
    assert "endTime         0.1;" not in text
    # stopAt mentions endTime but is not an endTime entry
    assert "stopAt          endTime;" in text


def test_template_untouched(make_params):
    before = (DEFAULT_TEMPLATE_DIR / "system" / "blockMeshDict").read_text()
    materialize_case(make_params(mesh_level=4, end_time=1.0))
    after = (DEFAULT_TEMPLATE_DIR / "system" / "blockMeshDict").read_text()
    assert before == after
    assert "__XCELLS_IN__" in after


def test_invalid_mesh_level_creates_nothing(tmp_path, sif_file):
    out = tmp_path / "never"
    # bypass model validation to reach the materializer's own check
    params = BenchmarkParameters.model_construct(
        container=sif_file, nprocs=4, mesh_level=5, nodes=[1], output_dir=out,
        end_time=None, template_dir=None,
    )
    with pytest.raises(ConfigurationError):
        materialize_case(params)
    assert not out.exists()


def test_missing_template_dir(make_params, tmp_path):
    with pytest.raises(FileNotFoundError):
        materialize_case(make_params(), template_dir=tmp_path / "no-such-template")


def test_missing_template_file(make_params, tmp_path):
    template = tmp_path / "tmpl"
    (template / "system").mkdir(parents=True)
    (template / "system" / "blockMeshDict").write_text("blocks ();\n")
    (template / "system" / "controlDict").write_text("endTime 1;\n")
    with pytest.raises(FileNotFoundError, match="decomposeParDict"):
        materialize_case(make_params(), template_dir=template)


def test_custom_template_substitution(make_params, tmp_path):
    template = tmp_path / "tmpl"
    (template / "system").mkdir(parents=True)
    (template / "system" / "blockMeshDict").write_text(
        "a __XCELLS_IN__ b __XCELLS_OUT__ c __YCELLS_UP__ d __YCELLS_LOW__ e __XCELLS_IN__\n"
    )
    (template / "system" / "decomposeParDict").write_text("n __NPROCS__;\n")
    (template / "system" / "controlDict").write_text("startTime 0;\nendTime 5;\n")

    workspace = materialize_case(make_params(mesh_level=1, nprocs=2, template_dir=template))
    assert (workspace.root / "system" / "blockMeshDict").read_text() == "a 20 b 25 c 15 d 15 e 20\n"
    assert (workspace.root / "system" / "decomposeParDict").read_text() == "n 2;\n"
    assert (workspace.root / "system" / "controlDict").read_text() == "startTime 0;\nendTime 5;\n"
