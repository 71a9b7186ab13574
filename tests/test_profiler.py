import json
import unittest

from scopebind import ClassModule, GraphProfiler, Injector, ValueModule


class DB: ...


class Repo:
    def __init__(self, db: DB):
        self.db = db


class TestGraphProfiler(unittest.TestCase):
    profiler: GraphProfiler

    def setUp(self):
        self.profiler = GraphProfiler()

    def test_records_root_and_children(self):
        root = Injector([Repo], observer=self.profiler)
        child = root.create_child([ValueModule(DB, DB())])

        assert child.parent is root
        root_dump, child_dump = self.profiler.dump()["injectors"]

        assert root_dump["parent_id"] is None
        assert child_dump["parent_id"] == root_dump["id"]
        assert child_dump["id"] != root_dump["id"]

    def test_serializes_providers_and_dependencies(self):
        root = Injector([Repo], observer=self.profiler)
        root.create_child([ValueModule(DB, DB())])

        root_dump, child_dump = self.profiler.dump()["injectors"]
        names = {provider["name"] for provider in root_dump["providers"].values()}
        assert names == {"Injector", "Repo"}

        repo = next(p for p in root_dump["providers"].values() if p["name"] == "Repo")
        db = next(p for p in child_dump["providers"].values() if p["name"] == "DB")

        assert repo["is_promise"] is False
        assert repo["dependencies"] == [{"token": db["id"], "is_promise": False, "is_lazy": False}]

    def test_injector_without_observer_is_not_recorded(self):
        Injector([Repo])

        assert self.profiler.dump() == {"injectors": []}

    def test_to_json(self):
        root = Injector([ClassModule(Repo, Repo)], observer=self.profiler)
        root.create_child()

        assert json.loads(self.profiler.to_json()) == self.profiler.dump()
