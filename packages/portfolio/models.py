"""SQLAlchemy models for staff, projects, keywords and time bookings."""

from __future__ import annotations

import datetime as dt

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

__all__ = [
    "Base",
    "StaffMember",
    "Project",
    "KeywordGroup",
    "Keyword",
    "ProjectKeyword",
    "StaffExperience",
]


class Base(DeclarativeBase):
    """Declarative base for all portfolio models."""


class StaffMember(Base):
    """Staff record plus its extensible metadata block."""

    __tablename__ = "staff_meta"

    staff_id: Mapped[int] = mapped_column("StaffID", Integer, primary_key=True, autoincrement=False)
    staff_name: Mapped[str] = mapped_column("StaffName", String(255), nullable=False)
    email: Mapped[str | None] = mapped_column("Email", String(255))
    location_name: Mapped[str | None] = mapped_column("LocationName", String(255))
    start_date: Mapped[dt.datetime | None] = mapped_column("StartDate", DateTime)
    job_title: Mapped[str | None] = mapped_column("JobTitle", String(255))
    grade_level: Mapped[int | None] = mapped_column("GradeLevel", Integer)
    discipline_name: Mapped[str | None] = mapped_column("DisciplineName", String(255))

    img_url: Mapped[str | None] = mapped_column("imgURL", Text)
    career_start: Mapped[dt.datetime | None] = mapped_column("careerStart", DateTime)
    nationality: Mapped[str | None] = mapped_column(String(128))
    high_level_description: Mapped[str | None] = mapped_column("highLevelDescription", Text)
    value_statement: Mapped[str | None] = mapped_column("valueStatement", Text)
    qualifications: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    professional_associations: Mapped[list[str]] = mapped_column(
        "professionalAssociations", JSON, default=list, nullable=False
    )
    committees: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    publications: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    bookings: Mapped[list["StaffExperience"]] = relationship(back_populates="staff")


class KeywordGroup(Base):
    __tablename__ = "keyword_groups"

    code: Mapped[str] = mapped_column("KeywordGroupCode", String(16), primary_key=True)
    name: Mapped[str] = mapped_column("KeywordGroupName", String(255), nullable=False)

    keywords: Mapped[list["Keyword"]] = relationship(back_populates="group", order_by="Keyword.code")


class Keyword(Base):
    __tablename__ = "keywords"

    code: Mapped[str] = mapped_column("KeywordCode", String(16), primary_key=True)
    keyword: Mapped[str] = mapped_column("Keyword", String(255), nullable=False)
    group_code: Mapped[str] = mapped_column(
        "KeywordGroupCode", ForeignKey("keyword_groups.KeywordGroupCode"), nullable=False, index=True
    )

    group: Mapped[KeywordGroup] = relationship(back_populates="keywords")


class ProjectKeyword(Base):
    """Derived project/keyword association; read-only to the query engine."""

    __tablename__ = "project_keywords"

    project_code: Mapped[int] = mapped_column(
        "ProjectCode", ForeignKey("projects.ProjectCode"), primary_key=True
    )
    keyword_code: Mapped[str] = mapped_column(
        "KeywordCode", ForeignKey("keywords.KeywordCode"), primary_key=True, index=True
    )


class Project(Base):
    __tablename__ = "projects"

    project_code: Mapped[int] = mapped_column("ProjectCode", Integer, primary_key=True, autoincrement=False)
    job_name_long: Mapped[str | None] = mapped_column("JobNameLong", String(512))
    start_date: Mapped[dt.datetime | None] = mapped_column("StartDate", DateTime)
    end_date: Mapped[dt.datetime | None] = mapped_column("EndDate", DateTime)
    centre_name: Mapped[str | None] = mapped_column("CentreName", String(255))
    accounting_centre_code: Mapped[int | None] = mapped_column("AccountingCentreCode", Integer)
    practice_name: Mapped[str | None] = mapped_column("PracticeName", String(255))
    business_code: Mapped[str | None] = mapped_column("BusinessCode", String(16))
    business_name: Mapped[str | None] = mapped_column("BusinessName", String(255))
    project_director_id: Mapped[int | None] = mapped_column("ProjectDirectorID", Integer)
    project_director_name: Mapped[str | None] = mapped_column("ProjectDirectorName", String(255))
    project_manager_id: Mapped[int | None] = mapped_column("ProjectManagerID", Integer)
    project_manager_name: Mapped[str | None] = mapped_column("ProjectManagerName", String(255))
    country_name: Mapped[str | None] = mapped_column("CountryName", String(128))
    town: Mapped[str | None] = mapped_column("Town", String(128))
    scope_of_service: Mapped[str | None] = mapped_column("ScopeOfService", Text)
    scope_of_works: Mapped[list[str]] = mapped_column("ScopeOfWorks", JSON, default=list, nullable=False)
    latitude: Mapped[float | None] = mapped_column("Latitude", Float)
    longitude: Mapped[float | None] = mapped_column("Longitude", Float)
    state: Mapped[str | None] = mapped_column("State", String(128))
    percent_complete: Mapped[float | None] = mapped_column("PercentComplete", Float)
    client_id: Mapped[int | None] = mapped_column("ClientID", Integer)
    client_name: Mapped[str | None] = mapped_column("ClientName", String(255))
    project_url: Mapped[str | None] = mapped_column("ProjectURL", Text)
    confidential: Mapped[bool] = mapped_column("Confidential", Boolean, default=False, nullable=False)
    img_url: Mapped[list[str]] = mapped_column("imgURL", JSON, default=list, nullable=False)

    keywords: Mapped[list[Keyword]] = relationship(
        secondary="project_keywords", order_by="Keyword.code", viewonly=True
    )
    bookings: Mapped[list["StaffExperience"]] = relationship(back_populates="project")

    @property
    def keyword_codes(self) -> list[str]:
        return [keyword.code for keyword in self.keywords]


class StaffExperience(Base):
    """Hours booked and narrative for one (project, staff) pair."""

    __tablename__ = "staff_experience"
    __table_args__ = (UniqueConstraint("ProjectCode", "StaffID", name="uq_experience_project_staff"),)

    experience_id: Mapped[int] = mapped_column("experienceID", Integer, primary_key=True, autoincrement=True)
    project_code: Mapped[int] = mapped_column(
        "ProjectCode", ForeignKey("projects.ProjectCode"), nullable=False, index=True
    )
    staff_id: Mapped[int] = mapped_column("StaffID", ForeignKey("staff_meta.StaffID"), nullable=False, index=True)
    total_hrs: Mapped[float | None] = mapped_column("TotalHrs", Numeric(12, 2, asdecimal=False))
    experience: Mapped[str | None] = mapped_column(Text)

    project: Mapped[Project] = relationship(back_populates="bookings")
    staff: Mapped[StaffMember] = relationship(back_populates="bookings")
