import fitz  # PyMuPDF

def extract_text_from_pdf(pdf_bytes: bytes) -> str:
    """Extract the embedded text layer from PDF bytes.

    Blocks are read top-to-bottom, left-to-right so multi-column pages keep a
    sensible reading order. Scanned PDFs without a text layer give "".
    NUL characters are dropped since the database TEXT type rejects them.
    """
    all_text = []

    with fitz.open(stream=pdf_bytes, filetype="pdf") as pdf:
        for page in pdf:
            # (x0, y0, x1, y1, "text", block_no, block_type)
            blocks = sorted(page.get_text("blocks"), key=lambda b: (b[1], b[0]))
            for block in blocks:
                if block[6] == 0:  # text block, not image
                    block_text = block[4].strip()
                    if block_text:
                        all_text.append(block_text)

    return "\n".join(all_text).replace("\x00", "").strip()
