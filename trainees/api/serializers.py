from rest_framework import serializers

from courses.models import CourseEnrollment
from subjects.models import Task

from ..models import SubjectProgress, TaskDocument, TaskProgress


class TaskDocumentSerializer(serializers.ModelSerializer):
    class Meta:
        model = TaskDocument
        fields = ["id", "filename", "content_type", "size", "uploaded_at"]
        read_only_fields = fields


class TaskProgressSerializer(serializers.ModelSerializer):
    documents = TaskDocumentSerializer(many=True, read_only=True)

    class Meta:
        model = TaskProgress
        fields = ["id", "task", "subject_progress", "status", "spent_time", "documents"]
        read_only_fields = fields


class SubjectProgressSerializer(serializers.ModelSerializer):
    class Meta:
        model = SubjectProgress
        fields = [
            "id",
            "course_subject",
            "status",
            "score",
            "started_at",
            "completed_at",
        ]
        read_only_fields = fields


class TaskSerializer(serializers.ModelSerializer):
    class Meta:
        model = Task
        fields = ["id", "name"]


class SubjectPageSerializer(serializers.Serializer):
    """Read-only view of :class:`trainees.services.SubjectPage`."""

    course = serializers.IntegerField(source="course.pk")
    subject = serializers.IntegerField(source="subject.pk")
    subject_name = serializers.CharField(source="subject.name")
    enrolled = serializers.BooleanField(source="is_enrolled")
    subject_progress = SubjectProgressSerializer(allow_null=True)
    tasks = serializers.SerializerMethodField()

    def get_tasks(self, page):
        return [
            {
                **TaskSerializer(task).data,
                "progress": (
                    TaskProgressSerializer(page.task_progresses[task.id]).data
                    if task.id in page.task_progresses
                    else None
                ),
            }
            for task in page.tasks
        ]


class EnrollmentRequestSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)


class EnrollmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = CourseEnrollment
        fields = ["id", "course", "user", "status", "created_at"]
        read_only_fields = fields


class StatusRequestSerializer(serializers.Serializer):
    status = serializers.CharField(allow_blank=True, required=False, default="")


class SpentTimeRequestSerializer(serializers.Serializer):
    spent_time = serializers.CharField(allow_blank=True, required=False, default="")


class ScoreRequestSerializer(serializers.Serializer):
    score = serializers.CharField()


class TaskDestroyRequestSerializer(serializers.Serializer):
    task_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)
