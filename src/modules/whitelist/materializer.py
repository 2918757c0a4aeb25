"""
Whitelist materializer: regenerate the admin-group file from the store.

The file is always rewritten in full, so a player who decays below the
threshold drops out on the next run. Writes go to a temp file in the target
directory which is fsynced and renamed over the target; readers see either
the old or the new file, never a partial one.

Format::

    Group=<group>:reserve
    <blank line>
    Admin=<player_id>:<group>
    ...
"""

from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional, Type

from src.core.database.service import DatabaseService
from src.core.exceptions import DatabaseError, WhitelistWriteError
from src.core.logging.logger import get_logger
from src.modules.shared.base_service import BaseService
from src.modules.whitelist.constants import GROUP_PERMISSIONS
from src.modules.whitelist.repository import STORE_ERRORS, ProgressRepository

if TYPE_CHECKING:
    from src.modules.whitelist.settings import WhitelistSettings


def render_whitelist(group_name: str, player_ids: Iterable[str]) -> str:
    admin_lines = "\n".join(f"Admin={player_id}:{group_name}" for player_id in player_ids)
    return f"Group={group_name}:{GROUP_PERMISSIONS}\n\n{admin_lines}\n"


def _target_mode(path: Path) -> int:
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        return 0o644


def atomic_write_text(path: Path, text: str) -> None:
    """
    Replace `path` with `text` atomically.

    Raises:
        OSError: The target is left untouched and the temp file removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_name, _target_mode(path))
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class WhitelistMaterializer(BaseService):
    def __init__(
        self,
        settings: WhitelistSettings,
        database: Type[DatabaseService] = DatabaseService,
        repository: Optional[ProgressRepository] = None,
        base_path: Optional[str] = None,
    ) -> None:
        super().__init__(settings, get_logger(__name__))
        self.database = database
        self.repository = repository or ProgressRepository()
        self.output_path = settings.resolve_output_path(base_path)

    def ensure_file_exists(self) -> bool:
        """
        Create parent directories and an empty file if none exists yet, so the
        game server's loader finds it at startup. Existing content is kept.
        """
        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.output_path, "a", encoding="utf-8"):
                pass
        except OSError as exc:
            self.log_error(
                "ensure_whitelist_file",
                WhitelistWriteError(str(self.output_path), exc),
            )
            return False

        self.log.debug("Whitelist file present", extra={"path": str(self.output_path)})
        return True

    async def materialize(self) -> Optional[int]:
        """
        Rewrite the file from every record at or above the threshold.

        Returns:
            Number of admin lines written, or None when the store read or the
            file write failed (previous contents stay in place).
        """
        try:
            async with self.database.get_session() as session:
                player_ids = await self.repository.list_ids_at_or_above(
                    session, self.settings.threshold
                )
        except STORE_ERRORS as exc:
            self.log_error("materialize_whitelist", DatabaseError("list_whitelisted", exc))
            return None

        content = render_whitelist(self.settings.group_name, player_ids)

        try:
            atomic_write_text(self.output_path, content)
        except OSError as exc:
            self.log_error(
                "materialize_whitelist",
                WhitelistWriteError(str(self.output_path), exc),
            )
            return None

        self.log.info(
            "Whitelist file written",
            extra={"path": str(self.output_path), "admins": len(player_ids)},
        )
        return len(player_ids)
