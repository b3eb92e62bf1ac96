"""Unit tests for ProjectStore: CRUD, export, selection, locking."""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest

from api.errors import FileError, ProjectNotFound
from api.project_store import ProjectStore
from api.schemas import Act, Chapter, Character, Plot, Project


def run(coro):
    return asyncio.run(coro)


def _full_record(base: Project) -> Project:
    """A record with every embedded entity filled in, based on `base`."""
    return base.model_copy(
        update={
            "title": "The Lighthouse",
            "description": "A keeper and a storm.",
            "synopsis": "Storm comes, keeper stays.",
            "characters": [
                Character(id="c1", name="Mara", age=52, description="Keeper", role="protagonist",
                          personality="stubborn", background="Former sailor"),
                Character(id="c2", name="Tobin", role="antagonist"),
            ],
            "plot": Plot(
                id="p1",
                title="Storm",
                genre="drama",
                theme="duty",
                setting="island",
                conflict="storm vs. keeper",
                resolution="dawn",
                acts=[Act(id="a1", title="Warning", order=2), Act(id="a2", title="Night", order=2)],
            ),
            "chapters": [
                Chapter(id="ch2", title="Second", content="The wind rose.", order=2, word_count=999),
                Chapter(id="ch1", title="First", content="Mara lit the lamp.\nIt flickered.", order=1, word_count=3),
            ],
        }
    )


def test_create_returns_empty_project_with_equal_timestamps():
    """create() returns a stored project with empty body and created_at == updated_at."""
    async def scenario():
        store = ProjectStore()
        p = await store.create("Novel", "desc")
        assert p.title == "Novel"
        assert p.description == "desc"
        assert p.characters == []
        assert p.chapters == []
        assert p.plot is None
        assert p.synopsis is None
        assert p.created_at == p.updated_at
        assert p.created_at.tzinfo is not None
        assert await store.get(p.id) == p

    run(scenario())


def test_create_ids_are_unique_under_concurrency():
    """Concurrent create() calls return pairwise distinct ids."""
    async def scenario():
        store = ProjectStore()
        projects = await asyncio.gather(*(store.create(f"P{i}") for i in range(100)))
        ids = [p.id for p in projects]
        assert len(set(ids)) == 100
        assert len(await store.list_projects()) == 100

    run(scenario())


def test_list_projects_empty_and_after_create():
    async def scenario():
        store = ProjectStore()
        assert await store.list_projects() == []
        a = await store.create("A")
        b = await store.create("B", "second")
        listed = await store.list_projects()
        assert sorted(p.id for p in listed) == sorted([a.id, b.id])

    run(scenario())


@pytest.mark.parametrize("op", ["get", "update", "delete", "export", "select"])
def test_unknown_id_raises_project_not_found(op):
    """Every id-taking operation raises ProjectNotFound carrying the id."""
    async def scenario():
        store = ProjectStore()
        other = await store.create("Other")
        missing = "no-such-project"
        with pytest.raises(ProjectNotFound) as exc_info:
            if op == "get":
                await store.get(missing)
            elif op == "update":
                await store.update(missing, other)
            elif op == "delete":
                await store.delete(missing)
            elif op == "export":
                await store.export(missing, "txt")
            else:
                await store.select(missing)
        assert exc_info.value.project_id == missing
        assert missing in str(exc_info.value)
        # The unrelated project is untouched.
        assert await store.get(other.id) == other

    run(scenario())


def test_update_replaces_whole_record():
    """update() stores the given record as-is except for updated_at."""
    async def scenario():
        store = ProjectStore()
        p = await store.create("Draft", "old description")
        record = _full_record(p)
        before = datetime.now(timezone.utc)
        returned = await store.update(p.id, record)
        got = await store.get(p.id)
        assert got == returned
        assert got == record.model_copy(update={"updated_at": got.updated_at})
        assert got.updated_at >= before
        assert got.updated_at >= p.updated_at

    run(scenario())


def test_update_is_not_a_merge():
    """Fields omitted from the new record are lost."""
    async def scenario():
        store = ProjectStore()
        p = await store.create("Draft", "will be dropped")
        await store.update(p.id, _full_record(p))
        bare = Project(id=p.id, title="Bare", created_at=p.created_at, updated_at=p.updated_at)
        got = await store.update(p.id, bare)
        assert got.title == "Bare"
        assert got.description is None
        assert got.characters == []
        assert got.plot is None
        assert got.chapters == []

    run(scenario())


def test_update_ignores_caller_updated_at_and_keeps_id():
    """Caller-supplied updated_at and a mismatched id do not reach the store."""
    async def scenario():
        store = ProjectStore()
        p = await store.create("Draft")
        record = p.model_copy(
            update={"id": "forged", "updated_at": datetime(1999, 1, 1, tzinfo=timezone.utc)}
        )
        got = await store.update(p.id, record)
        assert got.id == p.id
        assert got.updated_at >= p.updated_at
        assert [x.id for x in await store.list_projects()] == [p.id]

    run(scenario())


def test_update_timestamps_monotonic_when_clock_goes_back():
    """updated_at never decreases, even if the clock does."""
    start = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
    ticks = iter([start, start + timedelta(seconds=10), start + timedelta(seconds=5)])

    async def scenario():
        store = ProjectStore(clock=lambda: next(ticks))
        p = await store.create("Clocked")
        first = await store.update(p.id, p)
        second = await store.update(p.id, first)
        assert first.updated_at == start + timedelta(seconds=10)
        assert second.updated_at == first.updated_at
        assert second.updated_at >= second.created_at

    run(scenario())


def test_update_accepts_naive_created_at():
    """A naive created_at from the caller is treated as UTC."""
    async def scenario():
        store = ProjectStore()
        p = await store.create("Naive")
        record = p.model_copy(update={"created_at": p.created_at.replace(tzinfo=None)})
        got = await store.update(p.id, record)
        assert got.updated_at >= p.updated_at

    run(scenario())


def test_returned_records_are_copies():
    """Mutating a returned record does not change the stored one."""
    async def scenario():
        store = ProjectStore()
        p = await store.create("Original")
        p.title = "Mutated"
        p.chapters.append(Chapter(id="x", title="Sneaky"))
        got = await store.get(p.id)
        assert got.title == "Original"
        assert got.chapters == []

    run(scenario())


def test_delete_is_final():
    """After delete(), get/update/delete/export all raise ProjectNotFound."""
    async def scenario():
        store = ProjectStore()
        p = await store.create("Gone")
        await store.delete(p.id)
        with pytest.raises(ProjectNotFound):
            await store.get(p.id)
        with pytest.raises(ProjectNotFound):
            await store.update(p.id, p)
        with pytest.raises(ProjectNotFound):
            await store.delete(p.id)
        with pytest.raises(ProjectNotFound):
            await store.export(p.id, "json")
        assert await store.list_projects() == []

    run(scenario())


def test_export_txt_layout():
    """txt export: title, description, then chapter headings and raw content in storage order."""
    async def scenario():
        store = ProjectStore()
        p = await store.create("Draft")
        record = await store.update(p.id, _full_record(p))
        text = await store.export(p.id, "txt")
        assert text == (
            "Title: The Lighthouse\n"
            "Description: A keeper and a storm.\n"
            "\n## Second\nThe wind rose."
            "\n## First\nMara lit the lamp.\nIt flickered."
        )
        assert record.title in text
        for chapter in record.chapters:
            assert f"{chapter.title}\n{chapter.content}" in text
        # Storage order, not the `order` field.
        assert text.index("## Second") < text.index("## First")

    run(scenario())


def test_export_txt_without_description_or_chapters():
    async def scenario():
        store = ProjectStore()
        p = await store.create("Only title")
        assert await store.export(p.id, "txt") == "Title: Only title\n"

    run(scenario())


def test_export_json_round_trip():
    """json export parses back into a record equal to get()."""
    async def scenario():
        store = ProjectStore()
        p = await store.create("Draft")
        await store.update(p.id, _full_record(p))
        text = await store.export(p.id, "json")
        assert Project.model_validate_json(text) == await store.get(p.id)
        data = json.loads(text)
        assert list(data.keys())[:2] == ["id", "title"]
        assert data["chapters"][0]["word_count"] == 999
        assert "\n  " in text  # pretty-printed

    run(scenario())


@pytest.mark.parametrize("fmt", ["xml", "TXT", "", "pdf"])
def test_export_unsupported_format_raises_file_error(fmt):
    """Unsupported formats raise FileError and leave the project unchanged."""
    async def scenario():
        store = ProjectStore()
        p = await store.create("Draft")
        before = await store.get(p.id)
        with pytest.raises(FileError, match="Unsupported export format"):
            await store.export(p.id, fmt)
        assert await store.get(p.id) == before

    run(scenario())


def test_select_and_current():
    """select() marks the current project; current() returns it; delete clears it."""
    async def scenario():
        store = ProjectStore()
        assert await store.current() is None
        a = await store.create("A")
        b = await store.create("B")
        assert (await store.select(a.id)).id == a.id
        assert (await store.current()).id == a.id
        await store.select(b.id)
        await store.delete(a.id)
        assert (await store.current()).id == b.id
        await store.delete(b.id)
        assert await store.current() is None

    run(scenario())


def test_current_reflects_updates():
    async def scenario():
        store = ProjectStore()
        p = await store.create("Before")
        await store.select(p.id)
        await store.update(p.id, p.model_copy(update={"title": "After"}))
        assert (await store.current()).title == "After"

    run(scenario())


def test_operations_wait_for_the_lock():
    """An operation suspends while the store lock is held, then completes."""
    async def scenario():
        store = ProjectStore()
        p = await store.create("Locked")
        async with store._lock:
            task = asyncio.create_task(store.get(p.id))
            await asyncio.sleep(0.01)
            assert not task.done()
        assert (await task).id == p.id

    run(scenario())


def test_concurrent_updates_never_expose_partial_records():
    """Readers running alongside writers always see a consistent record."""
    async def scenario():
        store = ProjectStore()
        p = await store.create("v0")

        async def writer(i: int) -> None:
            record = p.model_copy(
                update={
                    "title": f"v{i}",
                    "chapters": [Chapter(id=f"ch{i}", title=f"v{i}", content=f"v{i}")],
                }
            )
            await store.update(p.id, record)

        async def reader() -> Project:
            return await store.get(p.id)

        results = await asyncio.gather(*(writer(i) for i in range(1, 30)), *(reader() for _ in range(30)))
        for got in results:
            if got is None:
                continue
            if got.chapters:
                assert got.chapters[0].title == got.title
            else:
                assert got.title == "v0"
        final = await store.get(p.id)
        assert final.chapters[0].content == final.title

    run(scenario())
