import pytest

from mpcecdsa.cli import main
from mpcecdsa.keystore import load_local_keys


@pytest.fixture(scope="module")
def key_file(tmp_path_factory):
    path = str(tmp_path_factory.mktemp("cli") / "keys.json")
    mp = pytest.MonkeyPatch()
    mp.setenv("MPCECDSA_PAILLIER_BITS", "1536")
    try:
        assert main(["keygen", "--threshold", "1", "--parties", "3", "--out", path]) == 0
    finally:
        mp.undo()
    return path


def test_keygen_writes_keys(key_file):
    keys = load_local_keys(key_file)
    assert [k.i for k in keys] == [1, 2, 3]
    assert keys[0].paillier_dk.public_key.n.bit_length() == 1536


def test_sign(key_file, capsys):
    assert main(["sign", "--keys", key_file, "--parties", "1", "3", "--message", "Hello world"]) == 0
    out = capsys.readouterr().out
    assert "verified: True" in out
    assert "recid: " in out


def test_reconstruct(key_file, capsys):
    assert main(["reconstruct", "--keys", key_file, "--parties", "2", "3"]) == 0
    assert "matches: True" in capsys.readouterr().out


def test_tweak(key_file, tmp_path, capsys):
    out_path = str(tmp_path / "child.json")
    assert main(["tweak", "--keys", key_file, "--il", "0badc0de", "--out", out_path]) == 0
    child = load_local_keys(out_path)
    assert child[0].public_key != load_local_keys(key_file)[0].public_key
    capsys.readouterr()
    assert main(["sign", "--keys", out_path, "--message", "child"]) == 0
    assert "verified: True" in capsys.readouterr().out


def test_errors_exit_non_zero(key_file, tmp_path):
    assert main(["sign", "--keys", key_file, "--parties", "1", "2", "3", "--message", "x"]) == 1
    assert main(["tweak", "--keys", key_file, "--il", "xyz", "--out", str(tmp_path / "o.json")]) == 1
    assert main(["sign", "--keys", str(tmp_path / "missing.json"), "--message", "x"]) == 1
    with pytest.raises(SystemExit):
        main(["keygen"])
