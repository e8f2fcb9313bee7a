# performance/management/commands/rebuild_appraisal_acl.py
from django.core.management.base import BaseCommand

from performance import models as m
from performance.signals.ownership import grant_assignment_people_acl, grant_dispute_people_acl


class Command(BaseCommand):
    help = "Re-grant object permissions on appraisal assignments and disputes (employee + manager)."

    def add_arguments(self, parser):
        parser.add_argument("--cycle", type=int, help="Limit to one cycle id.")

    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Rebuilding appraisal ACLs ..."))

        assignments = m.AppraisalAssignment.objects.select_related("employee__user", "manager__user")
        disputes = m.AppraisalDispute.objects.select_related("raised_by__user", "assignment__manager__user")
        if options.get("cycle"):
            assignments = assignments.filter(cycle_id=options["cycle"])
            disputes = disputes.filter(cycle_id=options["cycle"])

        self.stdout.write(f"- Processing AppraisalAssignment: {assignments.count()} records")
        for obj in assignments.iterator():
            grant_assignment_people_acl(m.AppraisalAssignment, obj, created=False)

        self.stdout.write(f"- Processing AppraisalDispute: {disputes.count()} records")
        for obj in disputes.iterator():
            # created=True so the grant runs for existing rows too
            grant_dispute_people_acl(m.AppraisalDispute, obj, created=True)

        self.stdout.write(self.style.SUCCESS("Done rebuilding appraisal ACLs."))
