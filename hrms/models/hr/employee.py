from sqlalchemy import Column, Integer, String, Numeric, Float, ForeignKey, Enum as SQLEnum, Date, UniqueConstraint
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin
from hrms.models.shared.enums import EmploymentType, PayType, EmployeeStatus

class Employee(TenantScopedMixin, BaseModel):
    __tablename__ = 'employees'
    __table_args__ = (UniqueConstraint('tenant_id', 'employee_code', name='uq_employee_tenant_code'),)

    employee_code = Column(String(20), nullable=False, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(100), nullable=False)
    phone = Column(String(20))
    department_id = Column(Integer, ForeignKey('departments.id'))
    manager_id = Column(Integer, ForeignKey('employees.id'), nullable=True, index=True)
    designation = Column(String(100))
    date_of_joining = Column(Date, nullable=False)
    employment_type = Column(SQLEnum(EmploymentType), nullable=False, default=EmploymentType.FULL_TIME)
    pay_type = Column(SQLEnum(PayType), nullable=False, default=PayType.MONTHLY)
    hourly_rate = Column(Numeric(10, 2))
    ot_multiplier = Column(Float, default=1.5)
    status = Column(SQLEnum(EmployeeStatus), nullable=False, default=EmployeeStatus.ACTIVE)

    # Relationships
    department = relationship("Department", back_populates="employees")
    manager = relationship("Employee", remote_side="Employee.id")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
