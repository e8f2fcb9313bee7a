# performance/views/serializers.py
"""Plain dict renderings of the appraisal models for the JSON views."""


def _iso(value):
    return value.isoformat() if value else None


def _num(value):
    return float(value) if value is not None else None


def template_to_dict(t) -> dict:
    return {
        "id": t.pk,
        "name": t.name,
        "description": t.description,
        "templateType": t.template_type,
        "instructions": t.instructions,
        "ratingScale": t.rating_scale,
        "criteria": [
            {
                "key": c.key,
                "title": c.title,
                "details": c.details,
                "weight": _num(c.weight),
                "maxScore": _num(c.max_score),
                "required": c.required,
            }
            for c in t.criteria.all()
        ],
        "isActive": t.active,
        "createdAt": _iso(t.created_at),
        "updatedAt": _iso(t.updated_at),
    }


def cycle_to_dict(c, *, with_targets: bool = True) -> dict:
    data = {
        "id": c.pk,
        "name": c.name,
        "description": c.description,
        "cycleType": c.cycle_type,
        "startDate": _iso(c.start_date),
        "endDate": _iso(c.end_date),
        "managerDueDate": _iso(c.manager_due_date),
        "employeeAcknowledgementDueDate": _iso(c.employee_acknowledgement_due_date),
        "status": c.status,
        "activatedAt": _iso(c.activated_at),
        "publishedAt": _iso(c.published_at),
        "closedAt": _iso(c.closed_at),
        "archivedAt": _iso(c.archived_at),
    }
    if with_targets:
        data["templateAssignments"] = [
            {
                "templateId": b.template_id,
                "templateName": b.template.name,
                "departmentIds": [d.pk for d in b.departments.all()],
                "positionIds": [p.pk for p in b.positions.all()],
                "employeeIds": [e.pk for e in b.employees.all()],
                "excludeEmployeeIds": [e.pk for e in b.excluded_employees.all()],
            }
            for b in c.template_assignments.all()
        ]
    return data


def assignment_to_dict(a) -> dict:
    record = a.latest_appraisal
    return {
        "id": a.pk,
        "cycleId": a.cycle_id,
        "templateId": a.template_id,
        "employeeId": a.employee_id,
        "managerId": a.manager_id,
        "departmentId": a.department_id,
        "positionId": a.position_id,
        "status": a.status,
        "assignedAt": _iso(a.assigned_at),
        "dueDate": _iso(a.due_date),
        "submittedAt": _iso(a.submitted_at),
        "publishedAt": _iso(a.published_at),
        "acknowledgedAt": _iso(a.acknowledged_at),
        "latestAppraisalId": record.pk if record else None,
        "version": a.version,
    }


def dispute_to_dict(d) -> dict:
    return {
        "id": d.pk,
        "appraisalId": d.appraisal_id,
        "assignmentId": d.assignment_id,
        "cycleId": d.cycle_id,
        "raisedByEmployeeId": d.raised_by_id,
        "raisedOnBehalfById": d.raised_on_behalf_by_id,
        "reason": d.reason,
        "details": d.details,
        "disputedCriteria": list(d.disputed_criteria or []),
        "proposedRating": _num(d.proposed_rating),
        "status": d.status,
        "submittedAt": _iso(d.submitted_at),
        "assignedReviewerId": d.assigned_reviewer_id,
        "resolvedByEmployeeId": d.resolved_by_id,
        "resolutionSummary": d.resolution_summary,
        "adjustedRating": _num(d.adjusted_rating),
        "resolvedAt": _iso(d.resolved_at),
        "version": d.version,
    }


def pip_to_dict(p) -> dict:
    return {
        "id": p.pk,
        "appraisalRecordId": p.appraisal_id,
        "employeeId": p.employee_id,
        "createdByManagerId": p.created_by_manager_id,
        "title": p.title,
        "description": p.description,
        "reason": p.reason,
        "improvementAreas": list(p.improvement_areas or []),
        "actionItems": list(p.action_items or []),
        "expectedOutcomes": p.expected_outcomes,
        "startDate": _iso(p.start_date),
        "targetCompletionDate": _iso(p.target_completion_date),
        "actualCompletionDate": _iso(p.actual_completion_date),
        "status": p.status,
        "progressNotes": p.progress_notes,
        "finalOutcome": p.final_outcome,
    }


def flag_to_dict(f) -> dict:
    return {
        "appraisalRecordId": f.appraisal_id,
        "employeeId": f.employee_id,
        "isHighPerformer": f.is_high_performer,
        "notes": f.notes,
        "promotionRecommendation": f.promotion_recommendation,
        "flaggedAt": _iso(f.flagged_at),
        "flaggedById": f.flagged_by_id,
    }


def rule_to_dict(r) -> dict:
    return {
        "id": r.pk,
        "name": r.name,
        "description": r.description,
        "fieldType": r.field_type,
        "allowedRoles": list(r.allowed_roles or []),
        "isActive": r.active,
        "effectiveFrom": _iso(r.effective_from),
        "effectiveTo": _iso(r.effective_to),
    }


def meeting_to_dict(m) -> dict:
    return {
        "id": m.pk,
        "managerId": m.manager_id,
        "employeeId": m.employee_id,
        "scheduledAt": _iso(m.scheduled_at),
        "agenda": m.agenda,
        "meetingNotes": m.meeting_notes,
        "status": m.status,
        "completedAt": _iso(m.completed_at),
        "cancelledAt": _iso(m.cancelled_at),
    }
