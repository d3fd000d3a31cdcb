import os

import pytest
from data_loader import load_data, parse_capacity
from models import UNLIMITED


def write(path, name, text):
    with open(os.path.join(path, f"{name}.csv"), "w", encoding="utf-8") as fh:
        fh.write(text)


@pytest.fixture
def tiny_data(tmp_path):
    write(tmp_path, "roles", (
        "role_id,label,weight,is_overflow\n"
        "Boss,Boss,5,FALSE\n"
        "Worker,Worker,0,no\n"
        "Spare,Spare,0,TRUE\n"
    ))
    write(tmp_path, "pools", (
        "pool_id,label,extended_access_threshold\n"
        "North,North Site,2\n"
        "South,South Site,\n"
    ))
    write(tmp_path, "pool_slots", (
        "pool_id,role_id,slots,round_start_slots\n"
        "North,Boss,1,1\n"
        "North,Worker,-3,4\n"
        "North,Spare,unlimited,\n"
        "South,Worker,2,\n"
        "South,Ghost,1,\n"
        "Nowhere,Worker,1,\n"
    ))
    write(tmp_path, "bans", (
        "participant_id,role_id\n"
        "mallory,Boss\n"
    ))
    return str(tmp_path)


class TestParseCapacity:
    def test_blank_is_unlimited(self):
        assert parse_capacity("") is UNLIMITED
        assert parse_capacity(" unlimited ") is UNLIMITED
        assert parse_capacity(None) is UNLIMITED

    def test_numbers(self):
        assert parse_capacity("3") == 3
        assert parse_capacity("2.0") == 2

    def test_negative_clamped(self, capsys):
        assert parse_capacity("-1") == 0
        assert "[WARN]" in capsys.readouterr().out

    def test_garbage_is_zero(self, capsys):
        assert parse_capacity("lots") == 0
        assert "[WARN]" in capsys.readouterr().out


class TestLoadData:
    def test_catalog(self, tiny_data):
        data = load_data(tiny_data)
        catalog = data["catalog"]
        assert catalog.ordered_weights == [5, 0]
        assert catalog.get("Spare").is_overflow is True
        assert catalog.get("Worker").is_overflow is False

    def test_pools_and_slots(self, tiny_data):
        pools = {p.pool_id: p for p in load_data(tiny_data, default_threshold=9)["pools"]}
        north = pools["North"]
        assert north.extended_access_threshold == 2
        assert pools["South"].extended_access_threshold == 9
        assert north.slots == {"Boss": 1, "Worker": 0, "Spare": UNLIMITED}
        assert north.round_start_slots == {"Boss": 1, "Worker": 4, "Spare": UNLIMITED}
        assert pools["South"].round_start_slots == {"Worker": 2, "Ghost": 1}

    def test_bans(self, tiny_data):
        bans = load_data(tiny_data)["bans"]
        assert bans.get_banned_roles("mallory") == {"Boss"}
        assert bans.get_banned_roles("alice") is None

    def test_integrity_warnings(self, tiny_data, capsys):
        load_data(tiny_data)
        captured = capsys.readouterr()
        assert "Ghost" in captured.out
        assert "Nowhere" in captured.out
        assert "South" in captured.err

    def test_bans_optional(self, tiny_data):
        os.remove(os.path.join(tiny_data, "bans.csv"))
        data = load_data(tiny_data)
        assert data["bans"].get_banned_roles("mallory") is None

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_data(str(tmp_path / "nope"))

    def test_missing_roles_file(self, tiny_data):
        os.remove(os.path.join(tiny_data, "roles.csv"))
        with pytest.raises(FileNotFoundError):
            load_data(tiny_data)

    def test_bundled_data_loads(self, data_dir):
        data = load_data(data_dir)
        assert len(data["catalog"]) > 0
        assert all(p.overflow_roles(data["catalog"]) for p in data["pools"])
