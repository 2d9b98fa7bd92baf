import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("subjects", "0001_initial"),
        ("courses", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Task",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("deleted_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("name", models.CharField(max_length=255)),
                (
                    "taskable_type",
                    models.CharField(
                        choices=[
                            ("subject", "Subject"),
                            ("course_subject", "Course subject"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "course_subject",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tasks",
                        to="courses.coursesubject",
                    ),
                ),
                (
                    "subject",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tasks",
                        to="subjects.subject",
                    ),
                ),
            ],
            options={
                "ordering": ("id",),
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("course_subject__isnull", True),
                                ("subject__isnull", False),
                                ("taskable_type", "subject"),
                            ),
                            models.Q(
                                ("course_subject__isnull", False),
                                ("subject__isnull", True),
                                ("taskable_type", "course_subject"),
                            ),
                            _connector="OR",
                        ),
                        name="subjects_task_single_taskable",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(
                            ("deleted_at__isnull", True), ("subject__isnull", False)
                        ),
                        fields=("subject", "name"),
                        name="subjects_task_name_unique_per_subject",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(
                            ("course_subject__isnull", False), ("deleted_at__isnull", True)
                        ),
                        fields=("course_subject", "name"),
                        name="subjects_task_name_unique_per_course_subject",
                    ),
                ],
            },
        ),
    ]
