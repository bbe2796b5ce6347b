from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

USD = "USD"

_CODE_PATTERN = re.compile(r"^[A-Z0-9]{3,10}$")


@dataclass(frozen=True)
class FiatCurrency:
    code: str
    name: str
    symbol: str
    symbol_native: str
    decimal_digits: int = 2


def _fiat(code: str, name: str, symbol: str, symbol_native: str, decimal_digits: int = 2) -> tuple[str, FiatCurrency]:
    return code, FiatCurrency(code, name, symbol, symbol_native, decimal_digits)


# Reference table of real-world currencies. Any code absent from it is a crypto ticker.
FIAT_CURRENCIES: dict[str, FiatCurrency] = dict(
    [
        _fiat("USD", "US Dollar", "$", "$"),
        _fiat("EUR", "Euro", "€", "€"),
        _fiat("GBP", "British Pound Sterling", "£", "£"),
        _fiat("JPY", "Japanese Yen", "¥", "￥", 0),
        _fiat("CHF", "Swiss Franc", "CHF", "CHF"),
        _fiat("CAD", "Canadian Dollar", "CA$", "$"),
        _fiat("AUD", "Australian Dollar", "AU$", "$"),
        _fiat("NZD", "New Zealand Dollar", "NZ$", "$"),
        _fiat("CNY", "Chinese Yuan", "CN¥", "CN¥"),
        _fiat("HKD", "Hong Kong Dollar", "HK$", "$"),
        _fiat("SGD", "Singapore Dollar", "S$", "$"),
        _fiat("TWD", "New Taiwan Dollar", "NT$", "NT$"),
        _fiat("KRW", "South Korean Won", "₩", "₩", 0),
        _fiat("INR", "Indian Rupee", "Rs", "₹"),
        _fiat("IDR", "Indonesian Rupiah", "Rp", "Rp", 0),
        _fiat("THB", "Thai Baht", "฿", "฿"),
        _fiat("VND", "Vietnamese Dong", "₫", "₫", 0),
        _fiat("PHP", "Philippine Peso", "₱", "₱"),
        _fiat("MYR", "Malaysian Ringgit", "RM", "RM"),
        _fiat("SEK", "Swedish Krona", "Skr", "kr"),
        _fiat("NOK", "Norwegian Krone", "Nkr", "kr"),
        _fiat("DKK", "Danish Krone", "Dkr", "kr"),
        _fiat("ISK", "Icelandic Króna", "Ikr", "kr", 0),
        _fiat("PLN", "Polish Zloty", "zł", "zł"),
        _fiat("CZK", "Czech Republic Koruna", "Kč", "Kč"),
        _fiat("HUF", "Hungarian Forint", "Ft", "Ft"),
        _fiat("RON", "Romanian Leu", "RON", "RON"),
        _fiat("TRY", "Turkish Lira", "TL", "TL"),
        _fiat("RUB", "Russian Ruble", "RUB", "₽."),
        _fiat("UAH", "Ukrainian Hryvnia", "₴", "₴"),
        _fiat("ILS", "Israeli New Sheqel", "₪", "₪"),
        _fiat("AED", "United Arab Emirates Dirham", "AED", "د.إ."),
        _fiat("SAR", "Saudi Riyal", "SR", "ر.س."),
        _fiat("KWD", "Kuwaiti Dinar", "KD", "د.ك.", 3),
        _fiat("BHD", "Bahraini Dinar", "BD", "د.ب.", 3),
        _fiat("OMR", "Omani Rial", "OMR", "ر.ع.", 3),
        _fiat("JOD", "Jordanian Dinar", "JD", "د.أ.", 3),
        _fiat("EGP", "Egyptian Pound", "EGP", "ج.م."),
        _fiat("ZAR", "South African Rand", "R", "R"),
        _fiat("NGN", "Nigerian Naira", "₦", "₦"),
        _fiat("KES", "Kenyan Shilling", "Ksh", "Ksh"),
        _fiat("UGX", "Ugandan Shilling", "USh", "USh", 0),
        _fiat("MXN", "Mexican Peso", "MX$", "$"),
        _fiat("BRL", "Brazilian Real", "R$", "R$"),
        _fiat("ARS", "Argentine Peso", "AR$", "$"),
        _fiat("CLP", "Chilean Peso", "CL$", "$", 0),
        _fiat("COP", "Colombian Peso", "CO$", "$", 0),
        _fiat("PEN", "Peruvian Nuevo Sol", "S/.", "S/."),
        _fiat("UYU", "Uruguayan Peso", "$U", "$"),
        _fiat("PYG", "Paraguayan Guarani", "₲", "₲", 0),
        _fiat("BOB", "Bolivian Boliviano", "Bs", "Bs"),
        _fiat("VES", "Venezuelan Bolívar", "Bs.S", "Bs.S"),
        _fiat("VUV", "Vanuatu Vatu", "VT", "VT", 0),
    ]
)

# High-denomination currencies where decimals are usually noise.
SMART_NO_DECIMAL_CURRENCIES = frozenset(
    {"ARS", "CLP", "COP", "IDR", "ISK", "JPY", "KRW", "PYG", "TWD", "VND", "VUV", "UGX"}
)


class CurrencyKind(str, Enum):
    FIAT = "fiat"
    CRYPTO = "crypto"


class QuotationConvention(str, Enum):
    """Direction in which a stored rate is quoted."""

    UNITS_PER_USD = "units_per_usd"
    USD_PER_UNIT = "usd_per_unit"


@dataclass(frozen=True)
class CurrencyCode:
    code: str

    @classmethod
    def parse(cls, value: "str | CurrencyCode") -> "CurrencyCode":
        if isinstance(value, CurrencyCode):
            return value
        return cls(normalize_currency(value))

    @classmethod
    def coerce(cls, value: "str | CurrencyCode") -> "CurrencyCode":
        """Lenient variant of parse() used on arithmetic paths that must not raise."""
        if isinstance(value, CurrencyCode):
            return value
        return cls(str(value or "").strip().upper())

    @property
    def kind(self) -> CurrencyKind:
        if self.code in FIAT_CURRENCIES:
            return CurrencyKind.FIAT
        return CurrencyKind.CRYPTO

    @property
    def is_usd(self) -> bool:
        return self.code == USD

    @property
    def is_crypto(self) -> bool:
        return self.kind is CurrencyKind.CRYPTO

    def quotation_convention(self) -> QuotationConvention:
        if self.is_crypto:
            return QuotationConvention.USD_PER_UNIT
        return QuotationConvention.UNITS_PER_USD

    def __str__(self) -> str:
        return self.code


def normalize_currency(value: str) -> str:
    normalized = value.strip().upper()
    if not _CODE_PATTERN.match(normalized):
        raise ValueError("Currency must be a 3-10 character alphanumeric code.")
    return normalized


def is_crypto(currency: str | CurrencyCode) -> bool:
    return CurrencyCode.coerce(currency).is_crypto


def currency_symbol(currency: str, symbol_style: str = "standard") -> str:
    code = CurrencyCode.coerce(currency).code
    fiat = FIAT_CURRENCIES.get(code)
    if fiat is None:
        return code
    if symbol_style == "native":
        return fiat.symbol_native or fiat.symbol or code
    return fiat.symbol or code


def currency_name(currency: str) -> str:
    code = CurrencyCode.coerce(currency).code
    fiat = FIAT_CURRENCIES.get(code)
    return fiat.name if fiat else code


def format_amount(
    amount: Decimal | int | float | str,
    currency: str = USD,
    symbol_style: str = "standard",
    smart: bool = True,
) -> str:
    code = CurrencyCode.coerce(currency).code
    fiat = FIAT_CURRENCIES.get(code)
    decimal_digits = fiat.decimal_digits if fiat else 2
    if smart and code in SMART_NO_DECIMAL_CURRENCIES:
        decimal_digits = 0

    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    quantum = Decimal(1).scaleb(-decimal_digits)
    rounded = value.quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{currency_symbol(code, symbol_style)}{rounded:,.{decimal_digits}f}"
