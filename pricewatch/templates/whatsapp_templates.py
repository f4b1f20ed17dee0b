"""
WhatsApp Message Templates

Message bodies for price alert deliveries.
"""

PRICE_ALERT_TEMPLATE = (
    "🚨 PRICE ALERT: {symbol} {arrow}\n\n"
    "{company} ({symbol}) hit your {direction} target of ${target_price:,.2f}.\n"
    "Current Price: ${current_price:,.2f}\n"
    "Time: {timestamp} UTC"
)

ARROWS = {
    "upper": "⬆️",
    "lower": "⬇️",
}
