# accounting/chart.py
"""
System account codes used by the posting patterns, and the default
chart of accounts seeded by ``manage.py seed_coa``.
"""

from accounting.models import Account

T = Account.AccountType

# Accounts the document builders post to
ACCOUNTS_RECEIVABLE = "1-11000"
PPN_MASUKAN = "1-14000"          # input VAT, claimable with Faktur Pajak
PPH23_PREPAID = "1-14500"        # PPh 23 withheld by clients (tax credit)
ACCOUNTS_PAYABLE = "2-20100"
PPN_KELUARAN = "2-22000"         # output VAT
PPH23_PAYABLE = "2-23100"        # PPh 23 withheld from vendors, owed to the state

DEFAULT_BANK_ACCOUNT = "1-10200"
DEFAULT_REVENUE_ACCOUNT = "4-40100"

COGS_PREFIX = "5-"
CASH_PREFIX = "1-10"                    # Kas dan Bank and its children
INVESTING_PREFIXES = ("1-17", "1-2")    # loans given, fixed assets


# (code, name, type, parent_code)
DEFAULT_CHART = [
    ("1-10000", "Kas dan Bank", T.ASSET, None),
    ("1-10100", "Kas Kecil", T.ASSET, "1-10000"),
    ("1-10200", "Bank BSI", T.ASSET, "1-10000"),
    ("1-10300", "Bank BRI", T.ASSET, "1-10000"),
    ("1-10400", "Giro", T.ASSET, "1-10000"),
    ("1-11000", "Piutang Usaha", T.ASSET, None),
    ("1-14000", "PPN Masukan", T.ASSET, None),
    ("1-14500", "PPh 23 Dibayar Dimuka", T.ASSET, None),
    ("1-17010", "Piutang Pinjaman", T.ASSET, None),
    ("1-20000", "Aset Tetap", T.ASSET, None),
    ("2-20100", "Utang Usaha", T.LIABILITY, None),
    ("2-22000", "PPN Keluaran", T.LIABILITY, None),
    ("2-23100", "Utang PPh 23", T.LIABILITY, None),
    ("3-30100", "Modal Disetor", T.EQUITY, None),
    ("3-30200", "Laba Ditahan", T.EQUITY, None),
    ("4-40100", "Pendapatan Jasa", T.REVENUE, None),
    ("4-40200", "Pendapatan Penjualan", T.REVENUE, None),
    ("5-50100", "Beban Pokok Proyek - Material", T.COGS, None),
    ("5-50200", "Beban Pokok Proyek - Subkontraktor", T.COGS, None),
    ("5-50300", "Beban Pokok Proyek - Tenaga Kerja", T.COGS, None),
    ("6-60100", "Beban Operasional Kantor", T.OPEX, None),
    ("6-60110", "Beban Perlengkapan Kantor", T.OPEX, None),
    ("6-60200", "Beban Gaji", T.OPEX, None),
    ("6-60800", "Beban Jasa Profesional", T.OPEX, None),
    ("7-70100", "Pendapatan Bunga", T.OTHER_INCOME, None),
    ("8-80100", "Beban Administrasi Bank", T.OTHER_EXPENSE, None),
    ("9-90100", "Beban Pajak Penghasilan", T.TAX_EXPENSE, None),
]
