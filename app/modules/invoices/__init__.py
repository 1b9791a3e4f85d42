"""
Módulo de Facturación (Invoices)

Convierte un pedido en a lo sumo una factura, con copia inmutable de sus
renglones al momento de emitir. También emite facturas de venta directa
cuando caja registra un cobro sin pedido.

Tablas principales:
- invoices: Facturas emitidas (order_id único)
- invoice_lines: Copia de renglones
"""

from .models import Invoice, InvoiceLine, InvoiceStatus, PaymentMethod
from .service import InvoiceService

__all__ = ["Invoice", "InvoiceLine", "InvoiceStatus", "PaymentMethod", "InvoiceService"]
