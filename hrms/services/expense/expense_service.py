import logging
from typing import Any, Dict, List, Optional
from datetime import date
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from hrms.core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError, ValidationError
from hrms.models.auth.user import User
from hrms.models.expense.expense_category import ExpenseCategory
from hrms.models.expense.expense_claim import ExpenseClaim
from hrms.models.shared.enums import AuditAction, ExpenseStatus
from hrms.schemas.expense.expense_schema import (
    ExpenseCategoryCreate,
    ExpenseCategoryUpdate,
    ExpenseClaimCreate,
    ExpenseClaimUpdate,
)
from hrms.services.audit.audit_service import AuditService
from hrms.services.shared.access import ensure_can_review, require_employee_id, reviewable_employee_ids
from hrms.services.shared.query import paginate
from hrms.services.shared.status_transitions import EXPENSE_TRANSITIONS, ensure_transition
from hrms.utils.date_utils import utc_now
from hrms.utils.serialization import snapshot

logger = logging.getLogger(__name__)

class ExpenseService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit_service = AuditService(session)

    # region Categories
    async def _check_unique_code(self, tenant_id: int, code: str, exclude_id: Optional[int] = None):
        query = select(ExpenseCategory.id).where(ExpenseCategory.tenant_id == tenant_id, ExpenseCategory.code == code)
        if exclude_id is not None:
            query = query.where(ExpenseCategory.id != exclude_id)
        if await self.session.scalar(query):
            raise ConflictError(f"Category with code '{code}' already exists")

    async def get_categories(self, tenant_id: int, include_inactive: bool = False) -> List[ExpenseCategory]:
        query = select(ExpenseCategory).where(ExpenseCategory.tenant_id == tenant_id)
        if not include_inactive:
            query = query.where(ExpenseCategory.is_active == True)
        result = await self.session.execute(query.order_by(ExpenseCategory.name))
        return list(result.scalars().all())

    async def get_category(self, category_id: int, tenant_id: int) -> ExpenseCategory:
        category = await self.session.scalar(
            select(ExpenseCategory).where(ExpenseCategory.id == category_id, ExpenseCategory.tenant_id == tenant_id)
        )
        if not category:
            raise NotFoundError(f"Expense category with ID {category_id} not found")
        return category

    async def create_category(self, data: ExpenseCategoryCreate, current_user: User) -> ExpenseCategory:
        try:
            await self._check_unique_code(current_user.tenant_id, data.code)

            category = ExpenseCategory(tenant_id=current_user.tenant_id, **data.model_dump())
            self.session.add(category)
            await self.session.flush()

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.CREATE,
                entity_type="ExpenseCategory",
                entity_id=category.id,
                new_values=data.model_dump(),
            )
            await self.session.commit()
            await self.session.refresh(category)

            logger.info(f"Expense category {category.code} created by user {current_user.id}")
            return category

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating expense category: {str(e)}")
            raise

    async def update_category(self, category_id: int, data: ExpenseCategoryUpdate, current_user: User) -> ExpenseCategory:
        try:
            category = await self.get_category(category_id, current_user.tenant_id)
            update_data = data.model_dump(exclude_unset=True)
            if update_data.get("code") and update_data["code"] != category.code:
                await self._check_unique_code(current_user.tenant_id, update_data["code"], exclude_id=category.id)

            old_values = snapshot(category, update_data.keys())
            for field, value in update_data.items():
                setattr(category, field, value)

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.UPDATE,
                entity_type="ExpenseCategory",
                entity_id=category.id,
                old_values=old_values,
                new_values=update_data,
            )
            await self.session.commit()
            await self.session.refresh(category)
            return category

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating expense category {category_id}: {str(e)}")
            raise

    async def delete_category(self, category_id: int, current_user: User) -> bool:
        """Hard delete; categories with claims must be deactivated instead"""
        try:
            category = await self.get_category(category_id, current_user.tenant_id)
            has_claims = await self.session.scalar(
                select(ExpenseClaim.id).where(ExpenseClaim.category_id == category.id).limit(1)
            )
            if has_claims:
                raise BadRequestError("Cannot delete category with existing claims. Deactivate it instead.")

            await self.session.delete(category)
            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.DELETE,
                entity_type="ExpenseCategory",
                entity_id=category_id,
            )
            await self.session.commit()

            logger.info(f"Expense category {category_id} deleted by user {current_user.id}")
            return True

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting expense category {category_id}: {str(e)}")
            raise
    # endregion

    # region Claims
    async def _get_active_category(self, category_id: int, tenant_id: int) -> ExpenseCategory:
        category = await self.get_category(category_id, tenant_id)
        if not category.is_active:
            raise NotFoundError(f"Expense category with ID {category_id} not found or inactive")
        return category

    @staticmethod
    def _check_amount(category: ExpenseCategory, amount: Decimal):
        if category.max_amount is not None and amount > category.max_amount:
            raise ValidationError(f"Amount exceeds the maximum of {category.max_amount} for {category.name}")

    async def _get_claim(self, claim_id: int, tenant_id: int) -> ExpenseClaim:
        claim = await self.session.scalar(
            select(ExpenseClaim).where(ExpenseClaim.id == claim_id, ExpenseClaim.tenant_id == tenant_id)
        )
        if not claim:
            raise NotFoundError(f"Expense claim with ID {claim_id} not found")
        return claim

    async def _get_own_draft(self, claim_id: int, current_user: User, verb: str, participle: str) -> ExpenseClaim:
        claim = await self._get_claim(claim_id, current_user.tenant_id)
        if claim.employee_id != current_user.employee_id:
            raise ForbiddenError(f"You can only {verb} your own claims")
        if claim.status != ExpenseStatus.DRAFT:
            raise BadRequestError(f"Only DRAFT claims can be {participle}")
        return claim

    async def create_claim(self, data: ExpenseClaimCreate, current_user: User) -> ExpenseClaim:
        employee_id = require_employee_id(current_user)
        try:
            if data.expense_date > date.today():
                raise BadRequestError("Expense date cannot be in the future")
            category = await self._get_active_category(data.category_id, current_user.tenant_id)
            self._check_amount(category, data.amount)

            claim = ExpenseClaim(
                tenant_id=current_user.tenant_id,
                employee_id=employee_id,
                status=ExpenseStatus.DRAFT,
                **data.model_dump(),
            )
            self.session.add(claim)
            await self.session.commit()
            await self.session.refresh(claim)

            logger.info(f"Expense claim {claim.id} drafted by employee {employee_id}")
            return claim

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating expense claim: {str(e)}")
            raise

    async def update_claim(self, claim_id: int, data: ExpenseClaimUpdate, current_user: User) -> ExpenseClaim:
        try:
            claim = await self._get_own_draft(claim_id, current_user, "edit", "edited")
            update_data = data.model_dump(exclude_unset=True)

            category_id = update_data.get("category_id", claim.category_id)
            amount = update_data.get("amount", claim.amount)
            category = await self._get_active_category(category_id, current_user.tenant_id)
            self._check_amount(category, amount)

            for field, value in update_data.items():
                setattr(claim, field, value)
            await self.session.commit()
            await self.session.refresh(claim)
            return claim

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating expense claim {claim_id}: {str(e)}")
            raise

    async def submit_claim(self, claim_id: int, current_user: User) -> ExpenseClaim:
        try:
            claim = await self._get_claim(claim_id, current_user.tenant_id)
            if claim.employee_id != current_user.employee_id:
                raise ForbiddenError("You can only submit your own claims")
            ensure_transition(EXPENSE_TRANSITIONS, "expense claim", claim.status, ExpenseStatus.SUBMITTED)

            claim.status = ExpenseStatus.SUBMITTED
            claim.submitted_at = utc_now()
            await self.session.commit()
            await self.session.refresh(claim)

            logger.info(f"Expense claim {claim.id} submitted by employee {claim.employee_id}")
            return claim

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error submitting expense claim {claim_id}: {str(e)}")
            raise

    async def delete_claim(self, claim_id: int, current_user: User) -> bool:
        try:
            claim = await self._get_own_draft(claim_id, current_user, "delete", "deleted")
            await self.session.delete(claim)
            await self.session.commit()

            logger.info(f"Expense claim {claim_id} deleted by employee {current_user.employee_id}")
            return True

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting expense claim {claim_id}: {str(e)}")
            raise

    async def get_claim(self, claim_id: int, current_user: User) -> ExpenseClaim:
        claim = await self._get_claim(claim_id, current_user.tenant_id)
        scope = await reviewable_employee_ids(self.session, current_user)
        if scope is not None and claim.employee_id not in scope and claim.employee_id != current_user.employee_id:
            raise NotFoundError(f"Expense claim with ID {claim_id} not found")
        return claim

    async def get_my_claims(
        self,
        current_user: User,
        page: int = 1,
        limit: int = 20,
        status: Optional[ExpenseStatus] = None,
    ) -> Dict[str, Any]:
        employee_id = require_employee_id(current_user)
        conditions = [ExpenseClaim.tenant_id == current_user.tenant_id, ExpenseClaim.employee_id == employee_id]
        if status:
            conditions.append(ExpenseClaim.status == status)

        query = select(ExpenseClaim).where(*conditions).order_by(ExpenseClaim.created_at.desc())
        return await paginate(self.session, query, page, limit)

    async def get_claims(
        self,
        current_user: User,
        page: int = 1,
        limit: int = 20,
        status: Optional[ExpenseStatus] = None,
        employee_id: Optional[int] = None,
        category_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        conditions = [ExpenseClaim.tenant_id == current_user.tenant_id]
        scope = await reviewable_employee_ids(self.session, current_user)
        if scope is not None:
            conditions.append(ExpenseClaim.employee_id.in_(scope))
        if status:
            conditions.append(ExpenseClaim.status == status)
        if employee_id:
            conditions.append(ExpenseClaim.employee_id == employee_id)
        if category_id:
            conditions.append(ExpenseClaim.category_id == category_id)

        query = select(ExpenseClaim).where(*conditions).order_by(ExpenseClaim.created_at.desc())
        return await paginate(self.session, query, page, limit)

    async def get_pending_approvals(self, current_user: User, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        return await self.get_claims(current_user, page=page, limit=limit, status=ExpenseStatus.SUBMITTED)

    async def _review(self, claim_id: int, current_user: User, target: ExpenseStatus, note: Optional[str]) -> ExpenseClaim:
        claim = await self._get_claim(claim_id, current_user.tenant_id)
        await ensure_can_review(self.session, current_user, claim.employee_id)
        ensure_transition(EXPENSE_TRANSITIONS, "expense claim", claim.status, target)

        previous = claim.status
        claim.status = target
        claim.approver_id = current_user.id
        claim.approver_note = note
        claim.approved_at = utc_now()

        self.audit_service.record(
            tenant_id=current_user.tenant_id,
            user_id=current_user.id,
            action=AuditAction.APPROVE if target == ExpenseStatus.APPROVED else AuditAction.REJECT,
            entity_type="ExpenseClaim",
            entity_id=claim.id,
            old_values={"status": previous},
            new_values={"status": target, "note": note},
        )
        await self.session.commit()
        await self.session.refresh(claim)
        return claim

    async def approve_claim(self, claim_id: int, current_user: User, note: Optional[str] = None) -> ExpenseClaim:
        try:
            claim = await self._review(claim_id, current_user, ExpenseStatus.APPROVED, note)
            logger.info(f"Expense claim {claim_id} approved by user {current_user.id}")
            return claim
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error approving expense claim {claim_id}: {str(e)}")
            raise

    async def reject_claim(self, claim_id: int, current_user: User, note: Optional[str] = None) -> ExpenseClaim:
        try:
            claim = await self._review(claim_id, current_user, ExpenseStatus.REJECTED, note)
            logger.info(f"Expense claim {claim_id} rejected by user {current_user.id}")
            return claim
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error rejecting expense claim {claim_id}: {str(e)}")
            raise

    async def mark_reimbursed(self, claim_id: int, current_user: User) -> ExpenseClaim:
        try:
            claim = await self._get_claim(claim_id, current_user.tenant_id)
            ensure_transition(EXPENSE_TRANSITIONS, "expense claim", claim.status, ExpenseStatus.REIMBURSED)

            claim.status = ExpenseStatus.REIMBURSED
            claim.reimbursed_at = utc_now()

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.UPDATE,
                entity_type="ExpenseClaim",
                entity_id=claim.id,
                old_values={"status": ExpenseStatus.APPROVED},
                new_values={"status": claim.status},
            )
            await self.session.commit()
            await self.session.refresh(claim)

            logger.info(f"Expense claim {claim_id} reimbursed by user {current_user.id}")
            return claim

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error reimbursing expense claim {claim_id}: {str(e)}")
            raise
    # endregion
