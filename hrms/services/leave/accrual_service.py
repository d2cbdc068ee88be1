import logging
from typing import Any, Dict, List, Optional
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from hrms.core.exceptions import ConflictError, NotFoundError
from hrms.models.auth.user import User
from hrms.models.hr.employee import Employee
from hrms.models.leave.accrual import LeaveAccrualEntry, LeaveAccrualRule, LeaveAccrualRun
from hrms.models.leave.leave_balance import LeaveBalance
from hrms.models.leave.leave_type import LeaveType
from hrms.models.shared.enums import AccrualRunStatus, AccrualTriggerType, AuditAction, EmployeeStatus
from hrms.schemas.leave.accrual_schema import AccrualRuleCreate, AccrualRuleUpdate
from hrms.services.audit.audit_service import AuditService
from hrms.services.leave import leave_balance
from hrms.services.leave.leave_service import LeaveService, leave_year_for
from hrms.services.shared.query import paginate
from hrms.utils.date_utils import utc_now

logger = logging.getLogger(__name__)

class LeaveAccrualService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit_service = AuditService(session)
        self.leave_service = LeaveService(session)

    # region Rules
    async def create_rule(self, data: AccrualRuleCreate, current_user: User) -> LeaveAccrualRule:
        tenant_id = current_user.tenant_id
        try:
            leave_type = await self.session.scalar(
                select(LeaveType).where(LeaveType.id == data.leave_type_id, LeaveType.tenant_id == tenant_id)
            )
            if not leave_type:
                raise NotFoundError(f"Leave type with ID {data.leave_type_id} not found")

            existing = await self.session.scalar(
                select(LeaveAccrualRule.id).where(
                    LeaveAccrualRule.tenant_id == tenant_id,
                    LeaveAccrualRule.leave_type_id == data.leave_type_id,
                )
            )
            if existing:
                raise ConflictError(f"An accrual rule already exists for leave type {leave_type.code}")

            rule = LeaveAccrualRule(tenant_id=tenant_id, **data.model_dump())
            self.session.add(rule)
            await self.session.flush()

            self.audit_service.record(
                tenant_id=tenant_id,
                user_id=current_user.id,
                action=AuditAction.CREATE,
                entity_type="LeaveAccrualRule",
                entity_id=rule.id,
                new_values=data.model_dump(),
            )
            await self.session.commit()
            await self.session.refresh(rule)

            logger.info(f"Accrual rule created for {leave_type.code} by user {current_user.id}")
            return rule

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating accrual rule: {str(e)}")
            raise

    async def list_rules(self, tenant_id: int) -> List[LeaveAccrualRule]:
        result = await self.session.execute(
            select(LeaveAccrualRule).where(LeaveAccrualRule.tenant_id == tenant_id).order_by(LeaveAccrualRule.id)
        )
        return list(result.scalars().all())

    async def _get_rule(self, rule_id: int, tenant_id: int) -> LeaveAccrualRule:
        rule = await self.session.scalar(
            select(LeaveAccrualRule).where(LeaveAccrualRule.id == rule_id, LeaveAccrualRule.tenant_id == tenant_id)
        )
        if not rule:
            raise NotFoundError(f"Accrual rule with ID {rule_id} not found")
        return rule

    async def update_rule(self, rule_id: int, data: AccrualRuleUpdate, current_user: User) -> LeaveAccrualRule:
        try:
            rule = await self._get_rule(rule_id, current_user.tenant_id)
            update_data = data.model_dump(exclude_unset=True)
            old_values = {field: getattr(rule, field) for field in update_data}
            for field, value in update_data.items():
                setattr(rule, field, value)

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.UPDATE,
                entity_type="LeaveAccrualRule",
                entity_id=rule.id,
                old_values=old_values,
                new_values=update_data,
            )
            await self.session.commit()
            await self.session.refresh(rule)
            return rule

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating accrual rule {rule_id}: {str(e)}")
            raise

    async def delete_rule(self, rule_id: int, current_user: User) -> bool:
        try:
            rule = await self._get_rule(rule_id, current_user.tenant_id)
            await self.session.delete(rule)
            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.DELETE,
                entity_type="LeaveAccrualRule",
                entity_id=rule_id,
            )
            await self.session.commit()

            logger.info(f"Accrual rule {rule_id} deleted by user {current_user.id}")
            return True

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting accrual rule {rule_id}: {str(e)}")
            raise
    # endregion

    # region Runs
    async def _start_run(
        self,
        tenant_id: int,
        month: int,
        year: int,
        trigger_type: AccrualTriggerType,
        user_id: Optional[int],
    ) -> LeaveAccrualRun:
        """Create the run row up front; a failed run is reset and retried"""
        run = await self.session.scalar(
            select(LeaveAccrualRun).where(
                LeaveAccrualRun.tenant_id == tenant_id,
                LeaveAccrualRun.month == month,
                LeaveAccrualRun.year == year,
            )
        )
        if run is not None:
            if run.status == AccrualRunStatus.COMPLETED:
                raise ConflictError(f"Leave accrual for {month:02d}/{year} has already been completed")
            if run.status == AccrualRunStatus.PENDING:
                raise ConflictError(f"Leave accrual for {month:02d}/{year} is already in progress")
            await self.session.execute(delete(LeaveAccrualEntry).where(LeaveAccrualEntry.run_id == run.id))
        else:
            run = LeaveAccrualRun(tenant_id=tenant_id, month=month, year=year)
            self.session.add(run)

        run.status = AccrualRunStatus.PENDING
        run.trigger_type = trigger_type
        run.triggered_by = user_id
        run.processed_count = 0
        run.failed_count = 0
        run.error_message = None
        run.completed_at = None
        await self.session.commit()
        await self.session.refresh(run)
        return run

    async def trigger_accrual(
        self,
        tenant_id: int,
        month: int,
        year: int,
        user_id: Optional[int] = None,
        trigger_type: AccrualTriggerType = AccrualTriggerType.MANUAL,
    ) -> LeaveAccrualRun:
        """Credit one month of every active accrual rule to every active employee"""
        run = await self._start_run(tenant_id, month, year, trigger_type, user_id)
        run_id = run.id
        balance_year = leave_year_for(date(year, month, 1))

        try:
            rules = (await self.session.execute(
                select(LeaveAccrualRule)
                .options(selectinload(LeaveAccrualRule.leave_type))
                .where(LeaveAccrualRule.tenant_id == tenant_id, LeaveAccrualRule.is_active == True)
            )).scalars().all()
            employee_ids = (await self.session.execute(
                select(Employee.id).where(Employee.tenant_id == tenant_id, Employee.status == EmployeeStatus.ACTIVE)
            )).scalars().all()

            processed = 0
            for rule in rules:
                if not rule.leave_type or not rule.leave_type.is_active:
                    continue
                for employee_id in employee_ids:
                    balance = await self.leave_service.get_or_create_balance(
                        tenant_id, employee_id, rule.leave_type, balance_year
                    )
                    result = leave_balance.apply_accrual(
                        balance,
                        rule.monthly_accrual_days,
                        max_cap=rule.max_balance_cap,
                        apply_cap_on_accrual=rule.apply_cap_on_accrual,
                    )
                    if result.days_accrued <= 0:
                        continue
                    self.session.add(LeaveAccrualEntry(
                        tenant_id=tenant_id,
                        run_id=run_id,
                        employee_id=employee_id,
                        leave_type_id=rule.leave_type_id,
                        days_accrued=result.days_accrued,
                        balance_before=result.balance_before,
                        balance_after=result.balance_after,
                        cap_applied=result.cap_applied,
                    ))
                    processed += 1

            run.status = AccrualRunStatus.COMPLETED
            run.processed_count = processed
            run.completed_at = utc_now()
            self.audit_service.record(
                tenant_id=tenant_id,
                user_id=user_id,
                action=AuditAction.CREATE,
                entity_type="LeaveAccrualRun",
                entity_id=run_id,
                new_values={"month": month, "year": year, "processed_count": processed, "trigger": trigger_type},
            )
            await self.session.commit()
            await self.session.refresh(run)

            logger.info(f"Leave accrual {month:02d}/{year} completed for tenant {tenant_id}: {processed} credits")
            return run

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Leave accrual {month:02d}/{year} failed for tenant {tenant_id}: {str(e)}")
            failed_run = await self.session.get(LeaveAccrualRun, run_id)
            failed_run.status = AccrualRunStatus.FAILED
            failed_run.error_message = str(e)[:1000]
            await self.session.commit()
            raise

    async def list_runs(self, tenant_id: int, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        query = (
            select(LeaveAccrualRun)
            .where(LeaveAccrualRun.tenant_id == tenant_id)
            .order_by(LeaveAccrualRun.year.desc(), LeaveAccrualRun.month.desc())
        )
        return await paginate(self.session, query, page, limit)

    async def get_run(self, run_id: int, tenant_id: int) -> LeaveAccrualRun:
        run = await self.session.scalar(
            select(LeaveAccrualRun)
            .options(selectinload(LeaveAccrualRun.entries))
            .where(LeaveAccrualRun.id == run_id, LeaveAccrualRun.tenant_id == tenant_id)
        )
        if not run:
            raise NotFoundError(f"Accrual run with ID {run_id} not found")
        return run
    # endregion

    async def process_year_end(self, tenant_id: int, year: int, current_user: User) -> Dict[str, Any]:
        """Apply deferred caps, then carry remaining days into next year's balances"""
        try:
            capped = 0
            rules = (await self.session.execute(
                select(LeaveAccrualRule).where(
                    LeaveAccrualRule.tenant_id == tenant_id,
                    LeaveAccrualRule.is_active == True,
                    LeaveAccrualRule.apply_cap_on_accrual == False,
                    LeaveAccrualRule.max_balance_cap.isnot(None),
                )
            )).scalars().all()
            for rule in rules:
                balances = (await self.session.execute(
                    select(LeaveBalance).where(
                        LeaveBalance.tenant_id == tenant_id,
                        LeaveBalance.leave_type_id == rule.leave_type_id,
                        LeaveBalance.year == year,
                    )
                )).scalars().all()
                for balance in balances:
                    before, after = leave_balance.apply_year_end_cap(balance, rule.max_balance_cap)
                    if after < before:
                        capped += 1

            carried = 0
            carry_types = (await self.session.execute(
                select(LeaveType).where(
                    LeaveType.tenant_id == tenant_id,
                    LeaveType.is_active == True,
                    LeaveType.carry_forward == True,
                )
            )).scalars().all()
            for leave_type in carry_types:
                balances = (await self.session.execute(
                    select(LeaveBalance).where(
                        LeaveBalance.tenant_id == tenant_id,
                        LeaveBalance.leave_type_id == leave_type.id,
                        LeaveBalance.year == year,
                    )
                )).scalars().all()
                for balance in balances:
                    days = leave_balance.carry_forward_days(balance, leave_type.max_carry_forward)
                    next_balance = await self.leave_service.get_or_create_balance(
                        tenant_id, balance.employee_id, leave_type, year + 1
                    )
                    next_balance.carried_over = days
                    if days > 0:
                        carried += 1

            self.audit_service.record(
                tenant_id=tenant_id,
                user_id=current_user.id,
                action=AuditAction.UPDATE,
                entity_type="LeaveYearEnd",
                new_values={"year": year, "capped": capped, "carried_forward": carried},
            )
            await self.session.commit()

            logger.info(f"Year-end leave processing {year} for tenant {tenant_id}: {capped} capped, {carried} carried")
            return {"year": year, "capped": capped, "carried_forward": carried}

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error processing leave year end {year}: {str(e)}")
            raise
