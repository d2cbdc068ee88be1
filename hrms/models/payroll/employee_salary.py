from sqlalchemy import Column, Integer, Boolean, Numeric, ForeignKey, Date
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin

class EmployeeSalary(TenantScopedMixin, BaseModel):
    __tablename__ = 'employee_salaries'

    employee_id = Column(Integer, ForeignKey('employees.id'), nullable=False, index=True)
    salary_structure_id = Column(Integer, ForeignKey('salary_structures.id'), nullable=False)
    base_pay = Column(Numeric(12, 2), nullable=False)
    effective_from = Column(Date, nullable=False)
    effective_to = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True)

    # Relationships
    salary_structure = relationship("SalaryStructure")
    employee = relationship("Employee")
