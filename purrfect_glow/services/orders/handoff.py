"""
WhatsApp handoff message rendering.

Placed orders are confirmed manually over WhatsApp. This module renders the
order summary the customer sends to the store and wraps it in a ``wa.me``
deep link. Rendering is deterministic: the same order snapshot always yields
the same message and link.
"""

from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Optional, Sequence
from urllib.parse import quote

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
)

from purrfect_glow.core.exceptions import HandoffGenerationError
from purrfect_glow.core.logging import get_logger
from purrfect_glow.database.models.order import Order
from purrfect_glow.database.models.shipping import ShippingModality, ShippingZone

logger = get_logger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent.parent / "templates" / "handoff"
ORDER_SUMMARY_TEMPLATE = "order_summary.txt.j2"
PRODUCT_INQUIRY_TEMPLATE = "product_inquiry.txt.j2"

# Characters JavaScript's encodeURIComponent leaves unescaped besides
# letters, digits and "-_.~", which quote() never escapes.
_URI_COMPONENT_SAFE = "!*'()"


def encode_uri_component(text: str) -> str:
    """Percent-encode UTF-8 text exactly like JavaScript's encodeURIComponent."""
    return quote(text, safe=_URI_COMPONENT_SAFE)


@dataclass(frozen=True)
class HandoffLine:
    product_name: str
    quantity: int
    line_total: Decimal


@dataclass(frozen=True)
class HandoffSummary:
    """Everything the order summary message shows."""

    full_name: str
    dni: str
    phone: str
    zone: ShippingZone
    modality: ShippingModality
    estimated_days: str
    subtotal: Decimal
    shipping_cost: Decimal
    total_amount: Decimal
    items: Sequence[HandoffLine]

    @classmethod
    def from_order(cls, order: Order) -> "HandoffSummary":
        """Build the summary from a persisted order and its snapshots."""
        return cls(
            full_name=order.full_name,
            dni=order.dni,
            phone=order.phone,
            zone=order.shipping_zone,
            modality=order.shipping_modality,
            estimated_days=order.estimated_days,
            subtotal=order.subtotal,
            shipping_cost=order.shipping_cost,
            total_amount=order.total_amount,
            items=[
                HandoffLine(
                    product_name=item.product_name,
                    quantity=item.quantity,
                    line_total=item.line_total,
                )
                for item in order.items
            ],
        )


class HandoffRenderer:
    """
    Renders handoff messages and WhatsApp links.

    Templates are loaded from ``purrfect_glow/templates/handoff``. Undefined
    template variables are errors rather than blank output.
    """

    def __init__(
        self,
        whatsapp_number: str,
        store_name: str = "Solicorn",
        currency_symbol: str = "S/",
        template_dir: Optional[Path] = None,
    ):
        """
        Initialize the renderer.

        Args:
            whatsapp_number: Destination number, digits only with country code
            store_name: Name greeted at the top of every message
            currency_symbol: Symbol printed before amounts
            template_dir: Directory containing the message templates
        """
        self.whatsapp_number = whatsapp_number
        self.store_name = store_name
        self.currency_symbol = currency_symbol

        self.env = Environment(
            loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
            autoescape=False,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["currency"] = self._format_currency

    def _format_currency(self, amount: Decimal) -> str:
        return f"{self.currency_symbol} {amount:.2f}"

    def _render(self, template_name: str, **context) -> str:
        try:
            template = self.env.get_template(template_name)
            return template.render(store_name=self.store_name, **context)
        except TemplateError as e:
            logger.error(
                "Handoff template rendering failed",
                template_name=template_name,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise HandoffGenerationError(
                f"Failed to render handoff message: {e}",
                template_name=template_name,
            ) from e

    def render_order_message(self, summary: HandoffSummary) -> str:
        """
        Render the order summary message.

        Raises:
            HandoffGenerationError: If the template cannot be rendered
        """
        return self._render(
            ORDER_SUMMARY_TEMPLATE,
            full_name=summary.full_name,
            dni=summary.dni,
            phone=summary.phone,
            items=summary.items,
            subtotal=summary.subtotal,
            zone_label=summary.zone.label,
            modality_label=summary.modality.label,
            shipping_cost=summary.shipping_cost,
            estimated_days=summary.estimated_days,
            total_amount=summary.total_amount,
        )

    def build_link(self, message: str) -> str:
        """Wrap a message in a wa.me deep link to the store number."""
        return f"https://wa.me/{self.whatsapp_number}?text={encode_uri_component(message)}"

    def order_link(self, summary: HandoffSummary) -> str:
        """
        Render the order message and return its deep link.

        Raises:
            HandoffGenerationError: If the template cannot be rendered
        """
        return self.build_link(self.render_order_message(summary))

    def product_inquiry_link(self, product_name: str) -> str:
        """Deep link asking the store about a single product."""
        message = self._render(PRODUCT_INQUIRY_TEMPLATE, product_name=product_name)
        return self.build_link(message)
