"""Tests for perch.datacollection — key/value stores."""

from perch.datacollection import DataCollection, ServerDataCollection


class TestDataCollection:
    def test_get_default(self) -> None:
        data = DataCollection({"a": 1, "n": None})
        assert data.get("a") == 1
        assert data.get("missing", "d") == "d"
        assert data.get("n", "d") == "d"

    def test_set_chains(self) -> None:
        data = DataCollection()
        assert data.set("a", 1).set("b", 2) is data
        assert data.all() == {"a": 1, "b": 2}

    def test_mapping_protocol(self) -> None:
        data = DataCollection({"a": 1})
        data["b"] = 2
        del data["a"]
        assert "b" in data
        assert list(data) == ["b"]
        assert len(data) == 1

    def test_exists_and_remove(self) -> None:
        data = DataCollection({"a": 1})
        assert data.exists("a")
        data.remove("a")
        data.remove("a")
        assert not data.exists("a")
        assert data.is_empty()

    def test_masked_all_fills_nulls(self) -> None:
        data = DataCollection({"a": 1, "b": 2})
        assert data.all(["a", "c"]) == {"a": 1, "c": None}
        assert data.all(["a", "c"], fill_with_nulls=False) == {"a": 1}

    def test_keys_for(self) -> None:
        data = DataCollection({"a": 1})
        assert data.keys_for() == ["a"]
        assert data.keys_for(["a", "z"]) == ["a", "z"]
        assert data.keys_for(["a", "z"], fill_with_nulls=False) == ["a"]

    def test_merge_overwrites(self) -> None:
        data = DataCollection({"a": 1, "b": 2})
        data.merge({"b": 3, "c": 4})
        assert data.all() == {"a": 1, "b": 3, "c": 4}

    def test_replace(self) -> None:
        data = DataCollection({"a": 1})
        data.replace({"z": 26})
        assert data.all() == {"z": 26}

    def test_clone_empty(self) -> None:
        clone = ServerDataCollection({"a": 1}).clone_empty()
        assert isinstance(clone, ServerDataCollection)
        assert clone.is_empty()


class TestServerDataCollection:
    def test_headers(self) -> None:
        server = ServerDataCollection(
            {
                "HTTP_HOST": "example.com",
                "HTTP_USER_AGENT": "curl",
                "CONTENT_TYPE": "text/plain",
                "REQUEST_URI": "/",
            }
        )
        assert server.headers() == {
            "HOST": "example.com",
            "USER_AGENT": "curl",
            "CONTENT_TYPE": "text/plain",
        }
