"""
Action Dispatcher

Runs the integrated action of an action node against the collaborators
(inventory, sales, notifications, messaging, CRM).

Supported actions:
- UPDATE_STOCK: add quantity to a product's stock and record the movement
- CREATE_SALE: create a pending sale
- NOTIFY_USER: create an in-app notification
- SEND_WHATSAPP: send a text message ({{key}} placeholders filled from context)
- UPDATE_DEAL_STATUS: move a CRM deal to another status

Unrecognized actions only log a warning; the flow continues.
"""

import logging
from typing import Optional

from .context import ContextManager
from .exceptions import ActionConfigurationError, OrganizationContextError, ResourceNotFoundError
from .execution_log import ExecutionLogger
from .integrations import Integrations
from .nodes import (
    ActionNode,
    CreateSaleParams,
    NotifyUserParams,
    SendWhatsAppParams,
    UpdateDealStatusParams,
    UpdateStockParams,
)
from .repository import FlowRepository

logger = logging.getLogger(__name__)


class ActionDispatcher:
    """
    Executes action nodes.

    Example:
        >>> dispatcher = ActionDispatcher(repository, execution_log, Integrations.from_session(db))
        >>> await dispatcher.perform_action(node, context, execution_id, simulated=False)
    """

    def __init__(
        self,
        repository: FlowRepository,
        execution_log: ExecutionLogger,
        integrations: Integrations,
    ):
        self.repository = repository
        self.execution_log = execution_log
        self.integrations = integrations

        self._handlers = {
            "UPDATE_STOCK": self._update_stock,
            "CREATE_SALE": self._create_sale,
            "NOTIFY_USER": self._notify_user,
            "SEND_WHATSAPP": self._send_whatsapp,
            "UPDATE_DEAL_STATUS": self._update_deal_status,
        }

    def _resolve_organization(self, execution_id: str) -> str:
        execution = self.repository.get_execution_by_id(execution_id)
        if execution is None or not execution.organization_id:
            raise OrganizationContextError(execution_id)
        return execution.organization_id

    async def perform_action(
        self,
        node: ActionNode,
        context: ContextManager,
        execution_id: str,
        simulated: bool = False,
    ) -> None:
        """
        Perform the node's action.

        Simulated runs log the action and stop there: no collaborator is called.

        Raises:
            OrganizationContextError: The execution's organization cannot be resolved
            ActionConfigurationError: Required params missing or invalid
            ResourceNotFoundError / IntegrationError: Collaborator failures
        """
        organization_id = self._resolve_organization(execution_id)
        action = node.action

        suffix = " (SKIPPED - SIMULATION)" if simulated else ""
        self.execution_log.info(execution_id, f"Running integrated action: {action}{suffix}")

        if simulated:
            return

        handler = self._handlers.get(action)
        if handler is None:
            self.execution_log.warning(execution_id, f"Action {action} not implemented yet")
            return

        params = node.parse_params()
        await handler(params, organization_id, context, execution_id)

    # =========================================================================
    # Handlers
    # =========================================================================

    async def _update_stock(
        self,
        params: UpdateStockParams,
        organization_id: str,
        context: ContextManager,
        execution_id: str,
    ) -> None:
        inventory = self.integrations.inventory

        product = await inventory.get_product(organization_id, params.product_id)
        if product is None:
            raise ResourceNotFoundError("Product not found", resource_id=params.product_id, action="UPDATE_STOCK")

        before = product["stock"]
        after = before + params.quantity

        await inventory.set_stock(organization_id, params.product_id, after)
        await inventory.record_movement(
            organization_id,
            params.product_id,
            quantity=params.quantity,
            type="adjustment",
            before_stock=before,
            after_stock=after,
            notes=params.reason or f"Auto-updated by Flow: {execution_id}",
        )
        self.execution_log.info(execution_id, f"Stock updated for {product['name']}: {before} -> {after}")

    async def _create_sale(
        self,
        params: CreateSaleParams,
        organization_id: str,
        context: ContextManager,
        execution_id: str,
    ) -> None:
        sale = await self.integrations.sales.create_sale(
            organization_id,
            params.product_id,
            quantity=params.quantity,
            customer_id=params.customer_id,
            total_price=params.price or 0,
            payment_status="pending",
            delivery_status="pending",
        )
        self.execution_log.info(execution_id, f"Sale created: {sale['id']}")

    async def _notify_user(
        self,
        params: NotifyUserParams,
        organization_id: str,
        context: ContextManager,
        execution_id: str,
    ) -> None:
        await self.integrations.notifications.create_notification(
            organization_id,
            params.user_id,
            title=params.title,
            message=params.message,
            priority=params.priority or "normal",
        )
        self.execution_log.info(execution_id, f"Notification sent to user {params.user_id}")

    async def _send_whatsapp(
        self,
        params: SendWhatsAppParams,
        organization_id: str,
        context: ContextManager,
        execution_id: str,
    ) -> None:
        text = context.render(params.message)
        await self.integrations.messaging.send_message(params.to, text)
        self.execution_log.info(execution_id, f"WhatsApp message sent to {params.to}")

    async def _update_deal_status(
        self,
        params: UpdateDealStatusParams,
        organization_id: str,
        context: ContextManager,
        execution_id: str,
    ) -> None:
        deal_id: Optional[str] = params.deal_id or context.get("dealId")
        if not deal_id:
            raise ActionConfigurationError("Deal ID missing", action="UPDATE_DEAL_STATUS")

        await self.integrations.crm.update_deal_status(organization_id, str(deal_id), params.status)
        self.execution_log.info(execution_id, f"Deal {deal_id} status updated to {params.status}")
