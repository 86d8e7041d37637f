"""portfolio.integrations — outbound HTTP gateways.

All calls to remote collaborators go through a gateway in this package,
never via bare ``requests`` calls in services or blueprints.

Current gateways:
  sheet_gateway.SheetGateway     — spreadsheet CRUD + auth API
  webhook_gateway.WebhookGateway — automation webhook
"""
