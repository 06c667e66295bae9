"""Text extractor for legacy Word 97-2003 binary (DOC) documents.

The file is an OLE compound document; :mod:`olefile` gives access to its
streams.  Text is located through the File Information Block (FIB) at the
start of the ``WordDocument`` stream and the piece table (CLX) stored in
the ``0Table``/``1Table`` stream:

    WordDocument ──FIB──> ccpText / ccpFtn / ... and fcClx, lcbClx
    xTable[fcClx:fcClx+lcbClx] ──CLX──> PlcPcd (character positions + pieces)
    piece ──fc──> bytes in WordDocument (cp1252 when compressed, else UTF-16LE)

Character positions (CPs) are laid out as main text, then footnotes,
headers, macros, annotations, endnotes.  Footnotes and endnotes are appended
to the main text as labelled sections.  Word's control characters (cell
marks, field codes, page breaks) are mapped to plain text.
"""

from __future__ import annotations

import io
import re
import struct

import olefile
import structlog

from src.interfaces.document_extractor import IDocumentExtractor
from src.models.document import DocumentFormat
from src.utils.errors import ExtractionFailedError

logger = structlog.get_logger(logger_name=__name__)

_OLE_MAGIC = bytes.fromhex("D0CF11E0A1B11AE1")
_WORD_IDENT = 0xA5EC

_FLAG_ENCRYPTED = 0x0100
_FLAG_WHICH_TABLE = 0x0200

# Index of the fcClx/lcbClx pair inside FibRgFcLcb97.
_CLX_PAIR_INDEX = 33
_PIECE_COMPRESSED = 0x40000000
_PIECE_FC_MASK = 0x3FFFFFFF

FOOTNOTES_LABEL = "--- Footnotes ---"
ENDNOTES_LABEL = "--- Endnotes ---"

_CHAR_MAP = str.maketrans(
    {
        "\r": "\n\n",  # paragraph mark
        "\x0b": "\n",  # manual line break
        "\x0c": "\n\n",  # page / section break
        "\x07": "\t",  # table cell mark
        "\x1e": "-",  # non-breaking hyphen
        "\xa0": " ",
        "\x1f": None,  # optional hyphen
        "\x01": None,  # picture anchor
        "\x02": None,  # footnote reference
        "\x05": None,  # annotation reference
        "\x08": None,  # drawn object anchor
    }
)
_TRAILING_SPACE = re.compile(r"[ \t]+\n")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")


class _Fib:
    """The handful of FIB fields needed to locate text."""

    def __init__(self, word: bytes) -> None:
        if len(word) < 64 or struct.unpack_from("<H", word, 0)[0] != _WORD_IDENT:
            raise ExtractionFailedError(message="WordDocument stream has no Word 97 header")

        flags = struct.unpack_from("<H", word, 0x0A)[0]
        self.encrypted = bool(flags & _FLAG_ENCRYPTED)
        self.table_stream = "1Table" if flags & _FLAG_WHICH_TABLE else "0Table"

        csw = struct.unpack_from("<H", word, 32)[0]
        cslw_offset = 34 + csw * 2
        cslw = struct.unpack_from("<H", word, cslw_offset)[0]
        lw = cslw_offset + 2
        (
            self.ccp_text,
            self.ccp_ftn,
            self.ccp_hdd,
            self.ccp_mcr,
            self.ccp_atn,
            self.ccp_edn,
        ) = struct.unpack_from("<6i", word, lw + 12)

        count_offset = lw + cslw * 4
        pair_count = struct.unpack_from("<H", word, count_offset)[0]
        if pair_count <= _CLX_PAIR_INDEX:
            raise ExtractionFailedError(message="Word header is too short to locate the piece table")
        self.fc_clx, self.lcb_clx = struct.unpack_from(
            "<II", word, count_offset + 2 + _CLX_PAIR_INDEX * 8
        )

    @property
    def endnote_start(self) -> int:
        return self.ccp_text + self.ccp_ftn + self.ccp_hdd + self.ccp_mcr + self.ccp_atn


class DOCExtractor(IDocumentExtractor):
    """Reads main text, footnotes and endnotes from a Word 97 binary file."""

    format = DocumentFormat.DOC
    mime_types = ("application/msword", "application/vnd.ms-word")
    extensions = (".doc",)

    def validate(self, data: bytes) -> bool:
        try:
            return bytes(data[: len(_OLE_MAGIC)]) == _OLE_MAGIC
        except Exception:  # noqa: BLE001
            return False

    def extract_text(self, data: bytes, path: str | None = None) -> str:
        with olefile.OleFileIO(io.BytesIO(data)) as ole:
            if not ole.exists("WordDocument"):
                raise ExtractionFailedError(message="OLE file has no WordDocument stream")
            word = ole.openstream("WordDocument").read()
            fib = _Fib(word)
            if fib.encrypted:
                raise ExtractionFailedError(message="Encrypted Word documents are not supported")
            if not ole.exists(fib.table_stream):
                raise ExtractionFailedError(message=f"Missing {fib.table_stream} stream")
            table = ole.openstream(fib.table_stream).read()

        full = self._piece_text(word, table[fib.fc_clx : fib.fc_clx + fib.lcb_clx])

        body = self._clean(full[: fib.ccp_text])
        footnotes = self._clean(full[fib.ccp_text : fib.ccp_text + fib.ccp_ftn])
        endnotes = self._clean(full[fib.endnote_start : fib.endnote_start + fib.ccp_edn])

        sections = [body]
        if footnotes:
            sections.append(f"{FOOTNOTES_LABEL}\n{footnotes}")
        if endnotes:
            sections.append(f"{ENDNOTES_LABEL}\n{endnotes}")
        logger.debug(
            "doc_text_located",
            ccp_text=fib.ccp_text,
            footnotes=bool(footnotes),
            endnotes=bool(endnotes),
        )
        return "\n\n".join(sections)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _piece_text(word: bytes, clx: bytes) -> str:
        """Concatenate every piece of the piece table in CP order."""
        pos = 0
        # Skip Prc entries (property modifiers) that precede the Pcdt.
        while pos < len(clx) and clx[pos] == 0x01:
            cb_grpprl = struct.unpack_from("<h", clx, pos + 1)[0]
            pos += 3 + cb_grpprl
        if pos >= len(clx) or clx[pos] != 0x02:
            raise ExtractionFailedError(message="Piece table not found")

        lcb = struct.unpack_from("<I", clx, pos + 1)[0]
        plc = clx[pos + 5 : pos + 5 + lcb]
        count = (lcb - 4) // 12
        if count <= 0 or len(plc) < lcb:
            raise ExtractionFailedError(message="Piece table is empty or truncated")

        cps = struct.unpack_from(f"<{count + 1}i", plc, 0)
        pcd_base = (count + 1) * 4

        pieces: list[str] = []
        for i in range(count):
            length = cps[i + 1] - cps[i]
            if length <= 0:
                continue
            fc_raw = struct.unpack_from("<I", plc, pcd_base + i * 8 + 2)[0]
            fc = fc_raw & _PIECE_FC_MASK
            if fc_raw & _PIECE_COMPRESSED:
                start = fc // 2
                pieces.append(word[start : start + length].decode("cp1252", errors="replace"))
            else:
                pieces.append(word[fc : fc + 2 * length].decode("utf-16-le", errors="replace"))
        return "".join(pieces)

    @staticmethod
    def _strip_fields(text: str) -> str:
        """Drop field instructions, keeping each field's displayed result.

        Fields look like ``\\x13 instruction \\x14 result \\x15`` and nest.
        """
        out: list[str] = []
        stack: list[bool] = []  # True once the field's result part begins
        for ch in text:
            if ch == "\x13":
                stack.append(False)
            elif ch == "\x14":
                if stack:
                    stack[-1] = True
            elif ch == "\x15":
                if stack:
                    stack.pop()
            elif all(stack):
                out.append(ch)
        return "".join(out)

    def _clean(self, text: str) -> str:
        text = self._strip_fields(text).translate(_CHAR_MAP)
        text = _TRAILING_SPACE.sub("\n", text)
        return _EXTRA_NEWLINES.sub("\n\n", text).strip()
