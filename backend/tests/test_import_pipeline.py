"""End-to-end tests for the import pipeline with a fake record creator."""
import pytest

from greengrocer.imports import (
    CSVParseError,
    ImportKind,
    ImportTooLargeError,
    get_template,
    preview_import,
    run_import,
)
from greengrocer.imports.rows import ProductImportRecord, UserImportRecord


class RecordingCreator:
    """Accepts every record except rows listed in ``fail_rows``."""

    def __init__(self, fail_rows: set[int] | None = None):
        self.fail_rows = fail_rows or set()
        self.records = []

    async def __call__(self, record):
        self.records.append(record)
        if record.row in self.fail_rows:
            raise ValueError(f"Creation failed for row {record.row}")
        return record


# ─── Users ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_mixed_user_file():
    creator = RecordingCreator()
    content = b"name,email\nAlice,alice@x.com\nBob,\nCarl,not-an-email\n"

    result = await run_import(content, ImportKind.users, creator, max_in_flight=1)

    assert result.total == 3
    assert result.success == 2
    assert result.failed == 1
    assert len(result.errors) == 1
    assert result.errors[0].row == 3
    assert result.errors[0].message == "Invalid email format"
    assert result.errors[0].data == {"name": "Carl", "email": "not-an-email"}

    alice, bob = creator.records
    assert isinstance(alice, UserImportRecord)
    assert (alice.row, alice.email, alice.email_is_synthetic) == (1, "alice@x.com", False)
    assert bob.row == 2
    assert bob.email_is_synthetic is True
    assert bob.email.startswith("user_")


@pytest.mark.asyncio
async def test_user_email_is_lowercased_before_creation():
    creator = RecordingCreator()
    await run_import(b"name,email\nAlice,Alice@X.COM\n", ImportKind.users, creator, max_in_flight=1)
    assert creator.records[0].email == "alice@x.com"


@pytest.mark.asyncio
async def test_duplicate_email_reported_on_its_row():
    creator = RecordingCreator(fail_rows={2})
    content = b"name,email\nAlice,alice@x.com\nAlice Again,alice@x.com\n"

    result = await run_import(content, ImportKind.users, creator, max_in_flight=1)

    assert result.success == 1
    assert [(e.row, e.message) for e in result.errors] == [(2, "Creation failed for row 2")]


# ─── Products ────────────────────────────────────────────────────────────────

PRODUCTS_CSV = (
    b"sku,name,price,stock\n"
    b"P1,One,1.00,1\n"
    b"P2,,1.00,1\n"        # row 2: no name
    b"P3,Three,2.50,\n"
    b"P4,Four,,4\n"
    b"P5,Five,abc,5\n"     # row 5: bad price
    b"P6,Six,6,6\n"
    b"P7,Seven,7,-7\n"     # row 7: bad stock
    b"P8,Eight,8,8\n"
)


@pytest.mark.asyncio
async def test_failed_rows_keep_their_original_numbers():
    creator = RecordingCreator()

    result = await run_import(PRODUCTS_CSV, ImportKind.products, creator, max_in_flight=1)

    assert [e.row for e in result.errors] == [2, 5, 7]
    assert [e.message for e in result.errors] == [
        "Product name is required",
        "Invalid price value",
        "Invalid stock value",
    ]
    assert [r.row for r in creator.records] == [1, 3, 4, 6, 8]
    assert all(isinstance(r, ProductImportRecord) for r in creator.records)


@pytest.mark.asyncio
async def test_creation_failure_is_merged_in_row_order():
    creator = RecordingCreator(fail_rows={4})

    result = await run_import(PRODUCTS_CSV, ImportKind.products, creator, max_in_flight=1)

    assert [e.row for e in result.errors] == [2, 4, 5, 7]
    # every valid row was still attempted
    assert [r.row for r in creator.records] == [1, 3, 4, 6, 8]
    assert result.success == 4
    assert result.success + result.failed == result.total == 8


@pytest.mark.asyncio
async def test_concurrent_creation_reports_the_same_result():
    creator = RecordingCreator(fail_rows={4})

    result = await run_import(PRODUCTS_CSV, ImportKind.products, creator, max_in_flight=4)

    assert [e.row for e in result.errors] == [2, 4, 5, 7]
    assert result.success == 4


@pytest.mark.asyncio
async def test_headerless_products():
    creator = RecordingCreator()

    result = await run_import(
        b"TOM001,Tomato\nCAR001,Carrot\n",
        ImportKind.products,
        creator,
        has_header=False,
        fieldnames=["sku", "name"],
        max_in_flight=1,
    )

    assert result.success == 2
    assert [r.sku for r in creator.records] == ["TOM001", "CAR001"]


# ─── Fatal errors ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_parse_error_aborts_before_any_creation():
    creator = RecordingCreator()

    with pytest.raises(CSVParseError):
        await run_import(b"name,email\nAlice,a@x.com\nBob\n", ImportKind.users, creator)

    assert creator.records == []


@pytest.mark.asyncio
async def test_too_many_rows_aborts_before_any_creation():
    creator = RecordingCreator()

    with pytest.raises(ImportTooLargeError):
        await run_import(b"name\nA\nB\nC\n", ImportKind.users, creator, max_rows=2)

    assert creator.records == []


@pytest.mark.asyncio
async def test_empty_file_with_header_imports_nothing():
    creator = RecordingCreator()

    result = await run_import(b"name,email\n", ImportKind.users, creator)

    assert (result.total, result.success, result.errors) == (0, 0, [])


# ─── Preview and templates ───────────────────────────────────────────────────

def test_preview_flags_errors_and_email_type():
    preview = preview_import(b"name,email\nAlice,alice@x.com\nBob,\nCarl,not-an-email\n", ImportKind.users)

    assert preview.columns == ["name", "email"]
    assert preview.total == 3
    assert [r.email_type for r in preview.rows] == ["real", "dummy", "real"]
    assert [r.error for r in preview.rows] == [None, None, "Invalid email format"]


def test_preview_is_limited():
    preview = preview_import(b"sku,name\nA,a\nB,b\nC,c\n", ImportKind.products, limit=2)

    assert preview.total == 3
    assert [r.row for r in preview.rows] == [1, 2]
    assert all(r.email_type is None for r in preview.rows)


@pytest.mark.parametrize("kind", list(ImportKind))
def test_templates_pass_validation(kind):
    filename, body = get_template(kind)

    preview = preview_import(body.encode("utf-8"), kind, limit=100)

    assert filename.endswith("_import_template.csv")
    assert preview.total > 0
    assert all(r.error is None for r in preview.rows)
