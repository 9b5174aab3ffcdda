import pytest

from app.schemas.notification_schemas import UserRole
from app.services.notifications.target_resolver import (
    CourseRecipients,
    RecipientList,
    RoleRecipients,
    SingleRecipient,
)
from tests.conftest import make_enrollment, make_student, make_teacher, student_email


pytestmark = pytest.mark.integration


class TestPassThroughDescriptors:
    @pytest.mark.asyncio
    async def test_single_email(self, resolver):
        assert await resolver.resolve(SingleRecipient("a@x.com")) == ["a@x.com"]

    @pytest.mark.asyncio
    async def test_email_list_keeps_duplicates_and_order(self, resolver):
        emails = ["b@x.com", "a@x.com", "b@x.com"]

        assert await resolver.resolve(RecipientList(emails)) == emails

    @pytest.mark.asyncio
    async def test_unsupported_descriptor(self, resolver):
        with pytest.raises(TypeError):
            await resolver.resolve("a@x.com")


class TestCourseResolution:
    """Enrollment ranges are closed intervals intersected with existing students."""

    @pytest.mark.asyncio
    async def test_union_of_ranges_intersected_with_existing_students(
        self, resolver, seed, sample_course
    ):
        await seed(
            make_enrollment(sample_course, 101, 103, section="A"),
            make_enrollment(sample_course, 105, 105, section="B"),
            make_student(101),
            make_student(102),
            make_student(104),
            make_student(105),
            make_student(106),
        )

        emails = await resolver.resolve(CourseRecipients(sample_course.id))

        assert emails == [student_email(101), student_email(102), student_email(105)]

    @pytest.mark.asyncio
    async def test_range_bounds_are_inclusive(self, resolver, seed, sample_course):
        await seed(
            make_enrollment(sample_course, 200, 210),
            make_student(199),
            make_student(200),
            make_student(210),
            make_student(211),
        )

        emails = await resolver.resolve_course(sample_course.id)

        assert emails == [student_email(200), student_email(210)]

    @pytest.mark.asyncio
    async def test_course_without_enrollments(self, resolver, seed, sample_course):
        await seed(make_student(101))

        assert await resolver.resolve_course(sample_course.id) == []

    @pytest.mark.asyncio
    async def test_enrollments_without_students(self, resolver, seed, sample_course):
        await seed(make_enrollment(sample_course, 300, 350))

        assert await resolver.resolve_course(sample_course.id) == []

    @pytest.mark.asyncio
    async def test_unknown_course(self, resolver):
        assert await resolver.resolve_course("no-such-course") == []

    @pytest.mark.asyncio
    async def test_other_courses_ranges_are_ignored(self, resolver, seed, sample_course):
        from app.db.models import Course

        (other,) = await seed(Course(code="CSE-202", name="Data Structures"))
        await seed(
            make_enrollment(sample_course, 101, 101),
            make_enrollment(other, 102, 102),
            make_student(101),
            make_student(102),
        )

        assert await resolver.resolve_course(sample_course.id) == [student_email(101)]


class TestRoleResolution:
    @pytest.mark.asyncio
    async def test_role_returns_every_user_of_that_kind(self, resolver, seed):
        await seed(
            make_student(101),
            make_teacher("rahman@cuet.ac.bd"),
            make_teacher("guest.lecturer@gmail.com"),
        )

        teachers = await resolver.resolve(RoleRecipients(UserRole.TEACHER))
        students = await resolver.resolve(RoleRecipients(UserRole.STUDENT))

        assert sorted(teachers) == ["guest.lecturer@gmail.com", "rahman@cuet.ac.bd"]
        assert students == [student_email(101)]

    @pytest.mark.asyncio
    async def test_role_with_no_users(self, resolver):
        assert await resolver.resolve_role(UserRole.TEACHER) == []
