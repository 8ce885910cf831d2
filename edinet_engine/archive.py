"""Reading PublicDoc XBRL / inline XBRL members out of an EDINET filing ZIP."""

import io
import logging
import zipfile
import zlib

from edinet_engine.schemas import ArchiveMember

logger = logging.getLogger(__name__)

XBRL_EXTENSIONS = (".xbrl", ".htm", ".html")


def _is_public_xbrl_member(name: str) -> bool:
    normalized = name.lower().replace("\\", "/")
    if "publicdoc" not in normalized:
        return False
    return normalized.endswith(XBRL_EXTENSIONS)


def find_xbrl_files(zip_content: bytes) -> list[ArchiveMember]:
    """Return the decoded XBRL/HTML members under PublicDoc/.

    AuditDoc/ and anything outside PublicDoc/ is ignored.  A corrupt ZIP
    yields an empty list; callers treat that the same as "no filing".
    """
    members: list[ArchiveMember] = []
    try:
        with zipfile.ZipFile(io.BytesIO(zip_content)) as zf:
            all_files = zf.namelist()
            logger.debug("Filing ZIP contains %d files: %s",
                         len(all_files), all_files[:20])
            for name in all_files:
                if not _is_public_xbrl_member(name):
                    continue
                text = zf.read(name).decode("utf-8", errors="replace")
                members.append(ArchiveMember(name=name, content=text))
    except zipfile.BadZipFile:
        logger.warning("Invalid ZIP file received from EDINET")
        return []
    except (OSError, EOFError, RuntimeError, zlib.error) as e:
        # Truncated members, encrypted entries etc.
        logger.warning("Unreadable ZIP file received from EDINET: %s", e)
        return []

    if not members:
        logger.warning("No XBRL (.xbrl) or HTML (.htm) files in PublicDoc/")
    return members
