"""
Report exports.
Supports Excel (.xlsx), CSV (.csv), and Text (.txt) formats.
"""
import csv
import io
from datetime import datetime

from django.http import HttpResponse
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter


class ExportFormat:
    EXCEL = 'xlsx'
    CSV = 'csv'
    TXT = 'txt'

    CHOICES = [EXCEL, CSV, TXT]
    CONTENT_TYPES = {
        EXCEL: 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        CSV: 'text/csv',
        TXT: 'text/plain',
    }


def format_value(value) -> str:
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'Ya' if value else 'Tidak'
    return str(value)


def export_to_excel(rows: list[dict], columns: list[dict], title: str, sheet_name: str = 'Laporan') -> bytes:
    """
    Write rows to a single worksheet.

    Numeric columns keep their integer rupiah values so the spreadsheet can
    sum them; everything else is written as text.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name

    header_font = Font(bold=True, color='FFFFFF')
    header_fill = PatternFill(start_color='1F6F50', end_color='1F6F50', fill_type='solid')
    thin = Side(style='thin')
    border = Border(left=thin, right=thin, top=thin, bottom=thin)

    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(columns))
    title_cell = ws.cell(row=1, column=1, value=title)
    title_cell.font = Font(bold=True, size=14)
    title_cell.alignment = Alignment(horizontal='center')

    ws.merge_cells(start_row=2, start_column=1, end_row=2, end_column=len(columns))
    stamp = ws.cell(row=2, column=1, value=f"Diekspor: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
    stamp.font = Font(italic=True, size=10, color='666666')
    stamp.alignment = Alignment(horizontal='center')

    header_row = 4
    for col_idx, col in enumerate(columns, 1):
        cell = ws.cell(row=header_row, column=col_idx, value=col['header'])
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)
        cell.border = border
        ws.column_dimensions[get_column_letter(col_idx)].width = col.get('width', 15)

    for row_idx, row in enumerate(rows, header_row + 1):
        for col_idx, col in enumerate(columns, 1):
            value = row.get(col['key'], '')
            if col.get('numeric') and value not in (None, ''):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.number_format = '#,##0'
                cell.alignment = Alignment(horizontal='right')
            else:
                cell = ws.cell(row=row_idx, column=col_idx, value=format_value(value))
            cell.border = border

    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


def export_to_csv(rows: list[dict], columns: list[dict], delimiter: str = ',') -> str:
    output = io.StringIO()
    writer = csv.writer(output, delimiter=delimiter, quoting=csv.QUOTE_MINIMAL)
    writer.writerow([col['header'] for col in columns])
    for row in rows:
        writer.writerow([format_value(row.get(col['key'], '')) for col in columns])
    return output.getvalue()


def export_to_txt(rows: list[dict], columns: list[dict], separator: str = '  ') -> str:
    """Fixed-width text, one line per row. Cells wider than 50 characters are cut."""
    widths = []
    for col in columns:
        width = len(col['header'])
        for row in rows:
            width = max(width, len(format_value(row.get(col['key'], ''))))
        widths.append(min(width, 50))

    def render(values):
        parts = []
        for idx, (col, value) in enumerate(zip(columns, values)):
            if len(value) > widths[idx]:
                value = value[:widths[idx] - 3] + '...'
            parts.append(value.rjust(widths[idx]) if col.get('numeric') else value.ljust(widths[idx]))
        return separator.join(parts).rstrip()

    lines = [render([col['header'] for col in columns])]
    lines.append(separator.join('-' * width for width in widths))
    for row in rows:
        lines.append(render([format_value(row.get(col['key'], '')) for col in columns]))
    return '\n'.join(lines)


def create_export_response(rows: list[dict], columns: list[dict], format: str, filename: str, title: str) -> HttpResponse:
    if format not in ExportFormat.CHOICES:
        raise ValueError(f"Invalid format: {format}. Must be one of {ExportFormat.CHOICES}")

    content_type = ExportFormat.CONTENT_TYPES[format]
    if format == ExportFormat.EXCEL:
        response = HttpResponse(export_to_excel(rows, columns, title=title), content_type=content_type)
    elif format == ExportFormat.CSV:
        # BOM so Excel detects UTF-8
        response = HttpResponse(export_to_csv(rows, columns), content_type=content_type, charset="utf-8-sig")
    else:
        response = HttpResponse(export_to_txt(rows, columns), content_type=content_type)

    response['Content-Disposition'] = f'attachment; filename="{filename}.{format}"'
    return response


# =============================================================================
# Column layouts
# =============================================================================

TRIAL_BALANCE_COLUMNS = [
    {'key': 'code', 'header': 'Kode Akun', 'width': 12},
    {'key': 'name', 'header': 'Nama Akun', 'width': 35},
    {'key': 'account_type', 'header': 'Tipe', 'width': 12},
    {'key': 'debit', 'header': 'Debit', 'width': 18, 'numeric': True},
    {'key': 'credit', 'header': 'Kredit', 'width': 18, 'numeric': True},
]

LEDGER_COLUMNS = [
    {'key': 'date', 'header': 'Tanggal', 'width': 12},
    {'key': 'journal_number', 'header': 'No. Jurnal', 'width': 15},
    {'key': 'description', 'header': 'Keterangan', 'width': 40},
    {'key': 'project_code', 'header': 'Proyek', 'width': 12},
    {'key': 'debit', 'header': 'Debit', 'width': 18, 'numeric': True},
    {'key': 'credit', 'header': 'Kredit', 'width': 18, 'numeric': True},
    {'key': 'balance', 'header': 'Saldo', 'width': 18, 'numeric': True},
]

AGING_COLUMNS = [
    {'key': 'number', 'header': 'No. Dokumen', 'width': 16},
    {'key': 'party', 'header': 'Pihak', 'width': 30},
    {'key': 'date', 'header': 'Tanggal', 'width': 12},
    {'key': 'due_date', 'header': 'Jatuh Tempo', 'width': 12},
    {'key': 'days_past_due', 'header': 'Hari Lewat', 'width': 10, 'numeric': True},
    {'key': 'total', 'header': 'Total', 'width': 18, 'numeric': True},
    {'key': 'outstanding', 'header': 'Sisa', 'width': 18, 'numeric': True},
    {'key': 'bucket', 'header': 'Umur', 'width': 10},
]


def trial_balance_rows(report: dict) -> list[dict]:
    """Account rows plus a closing total row."""
    rows = list(report['accounts'])
    rows.append({
        'code': '',
        'name': 'TOTAL',
        'account_type': '',
        'debit': report['total_debit'],
        'credit': report['total_credit'],
    })
    return rows


def ledger_rows(report: dict) -> list[dict]:
    rows = [{
        'date': '',
        'journal_number': '',
        'description': 'Saldo awal',
        'project_code': '',
        'debit': 0,
        'credit': 0,
        'balance': report['opening_balance'],
    }]
    rows.extend(report['lines'])
    return rows


STATEMENT_COLUMNS = [
    {'key': 'code', 'header': 'Kode Akun', 'width': 12},
    {'key': 'name', 'header': 'Keterangan', 'width': 40},
    {'key': 'amount', 'header': 'Jumlah', 'width': 18, 'numeric': True},
]

TAX_COLUMNS = [
    {'key': 'tax', 'header': 'Pajak', 'width': 22},
    {'key': 'number', 'header': 'No. Dokumen', 'width': 16},
    {'key': 'date', 'header': 'Tanggal', 'width': 12},
    {'key': 'party', 'header': 'Pihak', 'width': 30},
    {'key': 'faktur_pajak_number', 'header': 'Faktur Pajak', 'width': 22},
    {'key': 'base_amount', 'header': 'DPP', 'width': 18, 'numeric': True},
    {'key': 'tax_amount', 'header': 'Pajak', 'width': 18, 'numeric': True},
]


def _heading(label: str) -> dict:
    return {'code': '', 'name': label.upper(), 'amount': None}


def _total(label: str, amount: int) -> dict:
    return {'code': '', 'name': label, 'amount': amount}


def profit_loss_rows(report: dict) -> list[dict]:
    """Each section with its accounts and total, then the profit lines."""
    rows = []
    for key, section in report['sections'].items():
        if not section['accounts'] and key not in ('revenue', 'cogs', 'opex'):
            continue
        rows.append(_heading(section['label']))
        rows.extend(section['accounts'])
        rows.append(_total(f"Total {section['label']}", section['total']))
        if key == 'cogs':
            rows.append(_total('Laba Kotor', report['gross_profit']))
        elif key == 'opex':
            rows.append(_total('Laba Operasional', report['operating_profit']))
    rows.append(_total('LABA (RUGI) BERSIH', report['net_profit']))
    return rows


def balance_sheet_rows(report: dict) -> list[dict]:
    rows = [_heading('Aset')]
    rows.extend(report['assets'])
    rows.append(_total('Total Aset', report['total_assets']))
    rows.append(_heading('Liabilitas'))
    rows.extend(report['liabilities'])
    rows.append(_total('Total Liabilitas', report['total_liabilities']))
    rows.append(_heading('Ekuitas'))
    rows.extend(report['equity'])
    rows.append(_total('Total Ekuitas', report['total_equity']))
    rows.append(_total('TOTAL LIABILITAS DAN EKUITAS', report['total_liabilities_equity']))
    return rows


def tax_summary_rows(report: dict) -> list[dict]:
    """Document rows, then the ledger totals per tax."""
    rows = list(report['documents'])
    for label, key in (
        ('Total PPN Keluaran', 'ppn_output'),
        ('Total PPN Masukan', 'ppn_input'),
        ('PPN Kurang (Lebih) Bayar', 'ppn_payable'),
        ('Total PPh 23 Dipotong', 'pph23_withheld'),
        ('Total PPh 23 Dibayar Dimuka', 'pph23_prepaid'),
    ):
        rows.append({'tax': label, 'tax_amount': report[key]})
    return rows


def cash_flow_rows(report: dict) -> list[dict]:
    rows = [_total('Saldo kas awal', report['opening_cash'])]
    for section in report['sections'].values():
        rows.append(_heading(section['label']))
        rows.extend(section['accounts'])
        rows.append(_total(f"Arus kas bersih {section['label']}", section['total']))
    rows.append(_total('Kenaikan (Penurunan) Kas', report['net_change']))
    rows.append(_total('Saldo kas akhir', report['closing_cash']))
    return rows


PROJECT_COLUMNS = [
    {'key': 'code', 'header': 'Kode Proyek', 'width': 14},
    {'key': 'name', 'header': 'Proyek', 'width': 30},
    {'key': 'client', 'header': 'Klien', 'width': 25},
    {'key': 'status', 'header': 'Status', 'width': 12},
    {'key': 'budget', 'header': 'Anggaran', 'width': 18, 'numeric': True},
    {'key': 'revenue', 'header': 'Pendapatan', 'width': 18, 'numeric': True},
    {'key': 'cogs', 'header': 'HPP', 'width': 18, 'numeric': True},
    {'key': 'gross_profit', 'header': 'Laba Kotor', 'width': 18, 'numeric': True},
    {'key': 'margin_percent', 'header': 'Margin %', 'width': 10},
    {'key': 'budget_variance', 'header': 'Sisa Anggaran', 'width': 18, 'numeric': True},
]
