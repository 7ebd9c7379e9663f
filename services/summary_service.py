"""
AI-generated summary of the filtered orders.

Sends a compact JSON list of {status, product, pieces, karigar} records to
an OpenAI chat model and returns its Markdown reply. The model is an opaque
text-in/text-out collaborator: failures are logged and turned into a
readable message, never raised to the caller.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from openai import OpenAI

from models.order import Order
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"

NO_DATA_MESSAGE = "There is no order data to analyze."
DISABLED_MESSAGE = "AI features are disabled because the API key is not configured."
ERROR_MESSAGE = (
    "An error occurred while generating the AI summary. "
    "Please check the server log for details."
)

PROMPT_TEMPLATE = """
You are an expert business analyst for a high-end jewelry market.
Analyze the following list of recent orders and provide a concise, insightful summary for the business owner.
The data is provided as a JSON array.

Your summary should be formatted in Markdown and include:
1.  **Overall Status Breakdown:** A quick overview of how many orders are in each status category (e.g., Received, With Vendor, Completed).
2.  **Key Trends & Observations:** Identify any interesting patterns. For example, are certain Karigars (craftsmen) handling more orders? Are there any potential bottlenecks indicated by a large number of orders stuck in a particular status?
3.  **Actionable Advice:** Based on your analysis, provide one or two clear, actionable recommendations for the business owner to improve workflow or manage workload among Karigars.

Here is the order data:
{orders_json}
"""


def simplify_orders(orders: Sequence[Order]) -> List[Dict[str, Any]]:
    """Reduce orders to the fields the model needs."""
    simplified = []
    for order in orders:
        pieces = order.pieces
        if isinstance(pieces, float) and math.isnan(pieces):
            pieces = None
        simplified.append({
            "status": str(order.status),
            "product": order.product_description,
            "pieces": pieces,
            "karigar": order.karigar_name,
        })
    return simplified


class SummaryService:
    """
    Wrapper around the OpenAI client for order summaries.

    Without an API key the service stays disabled and answers with a fixed
    message instead of calling the API.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        client: Optional[OpenAI] = None
    ):
        """
        Args:
            api_key: OpenAI API key (None/empty disables the feature)
            model: Chat model name
            client: Pre-built OpenAI client (tests inject a mock)
        """
        self.model = model
        if client is not None:
            self._client = client
        elif api_key:
            self._client = OpenAI(api_key=api_key)
        else:
            self._client = None
            logger.warning("OPENAI_API_KEY not set. AI features will be disabled.")

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def summarize(self, orders: Sequence[Order]) -> str:
        """
        Summarize orders as Markdown text.

        Args:
            orders: Orders currently shown on the dashboard

        Returns:
            The model's reply, or a descriptive message when disabled,
            when there is nothing to analyze, or when the call fails
        """
        if not self.enabled:
            return DISABLED_MESSAGE
        if not orders:
            return NO_DATA_MESSAGE

        prompt = PROMPT_TEMPLATE.format(orders_json=json.dumps(simplify_orders(orders)))

        try:
            result = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
            )
            text = result.choices[0].message.content
        except Exception as e:
            logger.error(f"Error calling OpenAI API: {e}", exc_info=True)
            return ERROR_MESSAGE

        logger.info(f"AI summary generated for {len(orders)} orders")
        return text or ""


@dataclass(frozen=True)
class SummaryBlock:
    """One display line of a summary."""

    kind: str
    """'heading', 'item' (numbered line) or 'text'."""

    text: str


def summary_blocks(summary: str) -> List[SummaryBlock]:
    """
    Split a Markdown-flavoured summary into display lines.

    A line wrapped in ** is a heading (markers removed), a line starting
    with '1.', '2.' or '3.' is a numbered item, anything else is text.
    """
    blocks = []
    for line in summary.split("\n"):
        if line.startswith("**") and line.endswith("**") and len(line) >= 4:
            blocks.append(SummaryBlock("heading", line.replace("**", "")))
        elif line.startswith(("1.", "2.", "3.")):
            blocks.append(SummaryBlock("item", line))
        else:
            blocks.append(SummaryBlock("text", line))
    return blocks
