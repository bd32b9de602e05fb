from pydantic import BaseModel


class UserStats(BaseModel):
    total_users: int
    active_students: int
    active_lecturers: int


class CourseStats(BaseModel):
    total_courses: int
    active_courses: int


class AdminStats(UserStats, CourseStats):
    pass


class CourseActivity(BaseModel):
    course_id: int
    course_title: str
    total_students: int
    total_assignments: int
    total_submissions: int
    ungraded_submissions: int
