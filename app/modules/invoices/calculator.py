"""
Helper para el cálculo de totales de factura
"""

from decimal import Decimal
from typing import Dict, Iterable

from app.common.money import to_money


class InvoiceCalculator:
    """Subtotal, impuesto y total con una tasa única configurable"""

    def __init__(self, tax_rate: Decimal):
        self.tax_rate = Decimal(tax_rate)

    def calculate_tax(self, base_amount: Decimal) -> Decimal:
        """
        Calcular el valor del impuesto con redondeo comercial

        Args:
            base_amount: Valor base
        """
        return to_money(base_amount * self.tax_rate)

    def totals(self, line_subtotals: Iterable[Decimal]) -> Dict[str, Decimal]:
        """Totales a partir de los subtotales de cada renglón (impuesto por fuera)"""
        subtotal = to_money(sum(line_subtotals, Decimal("0")))
        tax = self.calculate_tax(subtotal)
        return {"subtotal": subtotal, "tax": tax, "total": subtotal + tax}

    def split_inclusive(self, total: Decimal) -> Dict[str, Decimal]:
        """
        Separar un monto cobrado que ya incluye el impuesto.

        Usado en ventas directas, donde lo cobrado es el total.
        """
        total = to_money(total)
        subtotal = to_money(total / (Decimal("1") + self.tax_rate))
        return {"subtotal": subtotal, "tax": total - subtotal, "total": total}
