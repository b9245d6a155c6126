from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_TIMEZONE
from .database.connection import DBConfig, DatabaseConnection
from .deductions.engine import DeductionEngine
from .deductions.loan_repository import LoanRepository
from .deductions.mysql_deduction_repository import MySQLDeductionRepository, MySQLDeductionTypeRepository
from .deductions.mysql_loan_repository import MySQLLoanRepository
from .deductions.repository import DeductionRepository, DeductionTypeRepository
from .deductions.service import DeductionService, LoanService
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.repository import LeaveRepository
from .leaves.service import LeaveService
from .overload.mysql_overload_repository import MySQLOverloadPayRepository
from .overload.repository import OverloadPayRepository
from .overload.service import OverloadPayService
from .payroll.calculator.base import PayrollCalculator
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.report import PayrollReportService
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.repository import SettingsRepository
from .settings.service import SettingsService
from .users.mysql_personnel_type_repository import MySQLPersonnelTypeRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.personnel_type_repository import PersonnelTypeRepository
from .users.repository import UserRepository
from .users.service import AuthService, PersonnelTypeService, UserService


@dataclass(frozen=True)
class Repositories:
    users: UserRepository
    personnel_types: PersonnelTypeRepository
    settings: SettingsRepository
    attendance: AttendanceRepository
    leaves: LeaveRepository
    deduction_types: DeductionTypeRepository
    deductions: DeductionRepository
    loans: LoanRepository
    overloads: OverloadPayRepository
    payroll: PayrollRepository


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    repos: Repositories
    calculator: PayrollCalculator

    auth_service: AuthService
    user_service: UserService
    personnel_type_service: PersonnelTypeService
    settings_service: SettingsService
    attendance_service: AttendanceService
    leave_service: LeaveService
    deduction_service: DeductionService
    loan_service: LoanService
    overload_service: OverloadPayService
    payroll_service: PayrollService
    payroll_report_service: PayrollReportService


def mysql_repositories(conn: DatabaseConnection) -> Repositories:
    return Repositories(
        users=MySQLUserRepository(conn),
        personnel_types=MySQLPersonnelTypeRepository(conn),
        settings=MySQLSettingsRepository(conn),
        attendance=MySQLAttendanceRepository(conn),
        leaves=MySQLLeaveRepository(conn),
        deduction_types=MySQLDeductionTypeRepository(conn),
        deductions=MySQLDeductionRepository(conn),
        loans=MySQLLoanRepository(conn),
        overloads=MySQLOverloadPayRepository(conn),
        payroll=MySQLPayrollRepository(conn),
    )


def wire_services(
    repos: Repositories,
    *,
    conn: Optional[DatabaseConnection] = None,
    tz_name: str = DEFAULT_TIMEZONE,
    calculator: Optional[PayrollCalculator] = None,
) -> Container:
    """Build every service on top of `repos` (MySQL in the app, in-memory fakes in tests)."""
    calculator = calculator or StandardPayrollCalculator()

    auth_service = AuthService(repos.users)
    user_service = UserService(repos.users, repos.personnel_types)
    personnel_type_service = PersonnelTypeService(repos.personnel_types)
    settings_service = SettingsService(repos.settings, repos.users, repos.attendance, tz_name=tz_name)
    attendance_service = AttendanceService(
        repos.attendance,
        repos.users,
        settings_service,
        repos.leaves,
        strategy_factory=AttendanceStrategyFactory(),
        tz_name=tz_name,
    )
    leave_service = LeaveService(repos.leaves, repos.attendance, tz_name=tz_name)
    deduction_service = DeductionService(
        repos.deduction_types, repos.deductions, repos.users, user_service, tz_name=tz_name
    )
    loan_service = LoanService(repos.loans, repos.users, tz_name=tz_name)
    overload_service = OverloadPayService(repos.overloads, repos.users, tz_name=tz_name)
    engine = DeductionEngine(repos.attendance, repos.deductions, repos.loans, repos.leaves, calculator)
    payroll_service = PayrollService(
        repos.payroll,
        repos.users,
        user_service,
        settings_service,
        deduction_service,
        overload_service,
        engine,
        calculator,
        tz_name=tz_name,
    )
    payroll_report_service = PayrollReportService(repos.payroll)

    return Container(
        conn=conn,
        repos=repos,
        calculator=calculator,
        auth_service=auth_service,
        user_service=user_service,
        personnel_type_service=personnel_type_service,
        settings_service=settings_service,
        attendance_service=attendance_service,
        leave_service=leave_service,
        deduction_service=deduction_service,
        loan_service=loan_service,
        overload_service=overload_service,
        payroll_service=payroll_service,
        payroll_report_service=payroll_report_service,
    )


def build_container(*, db_config: dict, tz_name: str = DEFAULT_TIMEZONE) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    return wire_services(mysql_repositories(conn), conn=conn, tz_name=tz_name)
