from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("scheduling", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="weeklyscheduleslot",
            name="frequency",
            field=models.CharField(
                choices=[("weekly", "Weekly"), ("biweekly", "Biweekly")],
                default="weekly",
                max_length=16,
            ),
        ),
        migrations.AddField(
            model_name="sessionoccurrence",
            name="fee_charged_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
    ]
