"""Unit tests for database migrator."""

from pathlib import Path

import aiosqlite
import pytest

from src.infrastructure.storage.sqlite.migrations.migrator import (
    REQUIRED_TABLES,
    MigrationInfo,
    create_backup,
    discover_migrations,
    get_applied_migrations,
    get_current_version,
    get_migration_status,
    initialize_database,
    main,
    restore_backup,
    verify_schema_integrity,
)


class TestMigrationInfo:
    """Tests for MigrationInfo dataclass."""

    def test_from_file_parses_filename(self, tmp_path: Path):
        migration_file = tmp_path / "v001_initial_schema.sql"
        migration_file.write_text("-- Test migration\nSELECT 1;")

        info = MigrationInfo.from_file(migration_file)

        assert info.version == "001"
        assert info.name == "initial_schema"
        assert info.path == migration_file
        assert len(info.checksum) == 16

    def test_from_file_invalid_filename_raises(self, tmp_path: Path):
        invalid_file = tmp_path / "invalid_migration.sql"
        invalid_file.write_text("SELECT 1;")

        with pytest.raises(ValueError, match="Invalid migration filename"):
            MigrationInfo.from_file(invalid_file)


class TestDiscoverMigrations:
    def test_bundled_migrations(self):
        migrations = discover_migrations()
        assert [m.version for m in migrations][0] == "001"

    def test_sorted_by_version(self, tmp_path: Path):
        (tmp_path / "v002_second.sql").write_text("SELECT 2;")
        (tmp_path / "v001_first.sql").write_text("SELECT 1;")

        migrations = discover_migrations(tmp_path)

        assert [m.name for m in migrations] == ["first", "second"]


class TestInitializeDatabase:
    @pytest.mark.asyncio
    async def test_creates_schema(self, temp_db_path: Path):
        results = await initialize_database(temp_db_path, create_backup_before=False)

        assert results
        assert all(r.success for r in results)

        checks = await verify_schema_integrity(temp_db_path)
        assert all(check.passed for check in checks)

    @pytest.mark.asyncio
    async def test_second_run_is_noop(self, temp_db_path: Path):
        await initialize_database(temp_db_path, create_backup_before=False)
        results = await initialize_database(temp_db_path)

        assert results == []
        # Backup is removed after a clean run
        assert list(temp_db_path.parent.glob("*.backup_*")) == []

    @pytest.mark.asyncio
    async def test_records_versions(self, temp_db_path: Path):
        await initialize_database(temp_db_path, create_backup_before=False)

        async with aiosqlite.connect(temp_db_path) as conn:
            applied = await get_applied_migrations(conn)
            current = await get_current_version(conn)

        assert "001" in applied
        assert current == max(applied)

    @pytest.mark.asyncio
    async def test_stops_at_failing_migration(self, tmp_path: Path):
        migrations = tmp_path / "migrations"
        migrations.mkdir()
        (migrations / "v001_ok.sql").write_text("CREATE TABLE a (id INTEGER);")
        (migrations / "v002_broken.sql").write_text("CREATE TABLE oops (;")
        (migrations / "v003_never.sql").write_text("CREATE TABLE c (id INTEGER);")

        results = await initialize_database(
            tmp_path / "db.sqlite", create_backup_before=False, migrations_dir=migrations
        )

        assert [r.success for r in results] == [True, False]
        assert results[1].error

    @pytest.mark.asyncio
    async def test_empty_migrations_dir(self, tmp_path: Path):
        empty = tmp_path / "none"
        empty.mkdir()
        assert await initialize_database(tmp_path / "db.sqlite", migrations_dir=empty) == []


class TestStatusAndIntegrity:
    @pytest.mark.asyncio
    async def test_status_for_missing_database(self, tmp_path: Path):
        status = await get_migration_status(tmp_path / "missing.db")

        assert status.exists is False
        assert "001" in status.pending

    @pytest.mark.asyncio
    async def test_status_after_migration(self, temp_db_path: Path):
        await initialize_database(temp_db_path, create_backup_before=False)

        status = await get_migration_status(temp_db_path)

        assert status.exists is True
        assert status.pending == []
        assert status.current_version == "001"
        assert status.up_to_date

    @pytest.mark.asyncio
    async def test_missing_tables_reported(self, temp_db_path: Path):
        async with aiosqlite.connect(temp_db_path) as conn:
            await conn.execute("CREATE TABLE reminders (id TEXT)")
            await conn.commit()

        checks = {c.name: c for c in await verify_schema_integrity(temp_db_path)}

        assert checks["integrity"].passed
        assert not checks["required_tables"].passed
        assert set(checks["required_tables"].detail.split(", ")) == set(REQUIRED_TABLES) - {"reminders"}


class TestBackup:
    def test_backup_and_restore(self, tmp_path: Path):
        db_path = tmp_path / "app.db"
        db_path.write_bytes(b"original")

        backup = create_backup(db_path)
        db_path.write_bytes(b"changed")
        restore_backup(db_path, backup)

        assert db_path.read_bytes() == b"original"


class TestCli:
    def test_migrate_then_verify(self, tmp_path: Path, monkeypatch, capsys):
        db_path = tmp_path / "cli.db"

        monkeypatch.setattr("sys.argv", ["todozen-migrate", "--db-path", str(db_path)])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 0
        assert "v001_initial: applied" in capsys.readouterr().out

        monkeypatch.setattr("sys.argv", ["todozen-migrate", "--db-path", str(db_path), "--verify"])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 0
        assert "FAIL" not in capsys.readouterr().out
