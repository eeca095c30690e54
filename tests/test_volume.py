from statusbar.volume import vol_perc


def test_missing_device(tmp_path, capsys):
    path = tmp_path / "mixer"
    assert vol_perc(str(path)) is None
    assert f"open '{path}':" in capsys.readouterr().err


def test_regular_file_is_not_a_mixer(tmp_path, capsys):
    path = tmp_path / "mixer"
    path.write_bytes(b"not a mixer")
    assert vol_perc(str(path)) is None
    assert "ioctl 'SOUND_MIXER_READ_DEVMASK':" in capsys.readouterr().err


def test_directory_is_rejected(tmp_path, capsys):
    assert vol_perc(str(tmp_path)) is None
    assert capsys.readouterr().err.strip() != ""