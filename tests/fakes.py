"""In-memory stand-in for the Supabase table client used by VideoStore."""
import copy


OWNER = "owner-1"

HEADER = "Video name,Video post date,Creator username,GMV"


class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    """Tiny subset of the postgrest query builder used by VideoStore."""

    def __init__(self, client: "FakeSupabaseClient", table: str):
        self.client = client
        self.table_name = table
        self.op = None
        self.columns = "*"
        self.payload = None
        self.filters: list[tuple[str, object]] = []
        self.order_by = None
        self.limit_n = None

    def select(self, columns="*", count=None):
        self.op = "select"
        self.columns = columns
        return self

    def upsert(self, rows):
        self.op = "upsert"
        self.payload = rows
        return self

    def update(self, fields):
        self.op = "update"
        self.payload = fields
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def is_(self, column, value):
        assert value == "null"
        self.filters.append((column, None))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def _matches(self, row: dict) -> bool:
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self) -> FakeResponse:
        self.client.calls.append((self.op, list(self.filters)))
        if self.op in self.client.fail_ops:
            raise RuntimeError(f"{self.op} failed")

        rows = self.client.tables.setdefault(self.table_name, [])
        if self.op == "select":
            found = [copy.deepcopy(r) for r in rows if self._matches(r)]
            if self.order_by:
                column, desc = self.order_by
                found.sort(key=lambda r: r[column], reverse=desc)
            if self.limit_n is not None:
                found = found[: self.limit_n]
            if self.columns != "*":
                wanted = [c.strip() for c in self.columns.split(",")]
                found = [{c: r.get(c) for c in wanted} for r in found]
            return FakeResponse(found, count=len(found))
        if self.op == "upsert":
            for new in self.payload:
                rows[:] = [r for r in rows if r["id"] != new["id"]]
                rows.append(copy.deepcopy(new))
            return FakeResponse(copy.deepcopy(self.payload))
        if self.op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    updated.append(copy.deepcopy(row))
            return FakeResponse(updated)
        if self.op == "delete":
            removed = [r for r in rows if self._matches(r)]
            rows[:] = [r for r in rows if not self._matches(r)]
            return FakeResponse(removed)
        raise AssertionError(f"unsupported operation {self.op}")


class FakeSupabaseClient:
    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.calls: list[tuple[str, list]] = []
        self.fail_ops: set[str] = set()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, table: str = "videos") -> list[dict]:
        return self.tables.get(table, [])


def make_row(**overrides) -> dict:
    """A stored videos row with sensible defaults."""
    row = {
        "id": "vid-1",
        "user_id": OWNER,
        "video_id": "",
        "name": "Cool Clip",
        "post_date": "2024-01-05T00:00:00.000Z",
        "creator_username": "bob",
        "gmv": 1234.5,
        "spark_code": "",
        "status": "pending",
        "tags": [],
        "created_at": "2024-02-01T10:00:00.000Z",
    }
    row.update(overrides)
    return row
