from __future__ import annotations

import fitz  # PyMuPDF

AUTOPRINT_JS = "print(true);"


def apply_autoprint(pdf_bytes: bytes) -> bytes:
    """Attach a JavaScript OpenAction so viewers open the print dialog."""
    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        js_xref = doc.get_new_xref()
        doc.update_object(js_xref, f"<</S/JavaScript/JS({AUTOPRINT_JS})>>")
        doc.xref_set_key(doc.pdf_catalog(), "OpenAction", f"{js_xref} 0 R")
        return doc.tobytes()
