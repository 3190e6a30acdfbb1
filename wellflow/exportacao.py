"""
Geração dos arquivos de download (PDF, XLSX e CSV).

Todas as funções devolvem um ``BytesIO`` posicionado no início, pronto para
``send_file``.
"""
import csv
import io
from datetime import datetime
from decimal import Decimal
from io import BytesIO

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from openpyxl import Workbook
from openpyxl.styles import Font

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def fmt_num(v) -> str:
    if v is None:
        return ""
    d = v if isinstance(v, Decimal) else Decimal(str(v))
    return f"{d.normalize():f}" if d == d.to_integral() else f"{d:f}"


def nome_arquivo(prefixo: str, ext: str, quando: datetime | None = None) -> str:
    return f"{prefixo}_{(quando or datetime.now()).strftime('%Y%m%d')}.{ext}"


def _wb_to_bytes(wb: Workbook) -> BytesIO:
    bio = BytesIO()
    wb.save(bio)
    bio.seek(0)
    return bio


# =========================
# PDF
# =========================
def _rodape(c, w, gerado_por: str, pagina: int, gerado_em: datetime):
    c.setFont("Helvetica", 8)
    y = 10 * mm
    c.drawString(15 * mm, y, f"Gerado por: {gerado_por}")
    c.drawCentredString(w / 2, y, f"Página {pagina}")
    c.drawRightString(w - 15 * mm, y, f"Data: {gerado_em.strftime('%d/%m/%Y %H:%M:%S')}")


def pdf_tabela(title: str, headers: list[str], rows: list[list], gerado_por: str,
               subtitulo: str | None = None, larguras: list[float] | None = None) -> BytesIO:
    """Tabela simples em A4 com quebra de página e rodapé em todas as páginas."""
    bio = BytesIO()
    c = canvas.Canvas(bio, pagesize=A4)
    w, h = A4
    gerado_em = datetime.now()
    pagina = 1

    x = 15 * mm
    util = w - 30 * mm
    if larguras:
        total = sum(larguras)
        colw = [util * p / total for p in larguras]
    else:
        colw = [util / max(1, len(headers))] * len(headers)
    limites = [max(4, int(cw / (1.9 * mm))) for cw in colw]

    def cabecalho(y):
        c.setFont("Helvetica-Bold", 9)
        pos = x
        for i, head in enumerate(headers):
            c.drawString(pos, y, str(head)[:limites[i]])
            pos += colw[i]
        c.line(x, y - 1.5 * mm, x + util, y - 1.5 * mm)
        c.setFont("Helvetica", 9)
        return y - 6 * mm

    y = h - 20 * mm
    c.setFont("Helvetica-Bold", 14)
    c.drawString(x, y, title)
    y -= 7 * mm
    if subtitulo:
        c.setFont("Helvetica", 10)
        c.drawString(x, y, subtitulo)
        y -= 7 * mm
    y -= 3 * mm
    y = cabecalho(y)

    for row in rows:
        if y < 20 * mm:
            _rodape(c, w, gerado_por, pagina, gerado_em)
            c.showPage()
            pagina += 1
            y = cabecalho(h - 20 * mm)

        pos = x
        for i, cell in enumerate(row):
            c.drawString(pos, y, ("" if cell is None else str(cell))[:limites[i]])
            pos += colw[i]
        y -= 5 * mm

    _rodape(c, w, gerado_por, pagina, gerado_em)
    c.showPage()
    c.save()
    bio.seek(0)
    return bio


def pdf_texto(title: str, blocos: list[tuple[str, list[str]]], gerado_por: str,
              subtitulo: str | None = None) -> BytesIO:
    """Relatório em blocos de texto (título do bloco + linhas)."""
    bio = BytesIO()
    c = canvas.Canvas(bio, pagesize=A4)
    w, h = A4
    gerado_em = datetime.now()
    pagina = 1
    x = 15 * mm
    max_chars = 100

    y = h - 20 * mm
    c.setFont("Helvetica-Bold", 14)
    c.drawString(x, y, title)
    y -= 7 * mm
    if subtitulo:
        c.setFont("Helvetica", 10)
        c.drawString(x, y, subtitulo)
        y -= 7 * mm

    def quebra(y, altura):
        nonlocal pagina
        if y - altura < 20 * mm:
            _rodape(c, w, gerado_por, pagina, gerado_em)
            c.showPage()
            pagina += 1
            return h - 20 * mm
        return y

    for titulo_bloco, linhas in blocos:
        y = quebra(y - 4 * mm, 6 * mm)
        c.setFont("Helvetica-Bold", 11)
        c.drawString(x, y, titulo_bloco)
        y -= 6 * mm
        c.setFont("Helvetica", 9)
        for linha in linhas:
            texto = str(linha)
            partes = [texto[i:i + max_chars] for i in range(0, len(texto), max_chars)] or [""]
            for parte in partes:
                y = quebra(y, 5 * mm)
                c.setFont("Helvetica", 9)
                c.drawString(x, y, parte)
                y -= 5 * mm

    _rodape(c, w, gerado_por, pagina, gerado_em)
    c.showPage()
    c.save()
    bio.seek(0)
    return bio


# =========================
# XLSX / CSV
# =========================
def xlsx_tabela(sheet_title: str, headers: list[str], rows: list[list]) -> BytesIO:
    wb = Workbook()
    ws = wb.active
    ws.title = (sheet_title or "Planilha")[:31]
    ws.append(headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for row in rows:
        ws.append([float(v) if isinstance(v, Decimal) else v for v in row])

    for i, head in enumerate(headers, start=1):
        largura = max([len(str(head))] + [len(str(r[i - 1] or "")) for r in rows])
        ws.column_dimensions[ws.cell(row=1, column=i).column_letter].width = min(60, largura + 2)

    return _wb_to_bytes(wb)


def csv_tabela(headers: list[str], rows: list[list]) -> BytesIO:
    sio = io.StringIO()
    w = csv.writer(sio)
    w.writerow(headers)
    for row in rows:
        w.writerow(["" if v is None else (fmt_num(v) if isinstance(v, Decimal) else v) for v in row])
    return BytesIO(sio.getvalue().encode("utf-8-sig"))
