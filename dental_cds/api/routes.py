"""JSON endpoints over the clinical rules engine."""

import logging

from flask import Blueprint, current_app, request

from ..exceptions import ComparisonError, InvalidPatientError, NotFoundError
from ..models import PatientParameters
from ..services import ClinicalServices
from .api_response import api_error, api_success

logger = logging.getLogger(__name__)

api_bp = Blueprint("dental_cds_api", __name__, url_prefix="/api")


def _services() -> ClinicalServices:
    return current_app.extensions["dental_cds"]


def _patient(data: dict) -> PatientParameters:
    patient = data.get("patient")
    if not isinstance(patient, dict):
        raise InvalidPatientError("patient", "patient object is required")
    for key in ("conditions", "allergies"):
        value = patient.get(key)
        if value is not None and not (
            isinstance(value, list) and all(isinstance(item, str) for item in value)
        ):
            raise InvalidPatientError(key, f"{key} must be a list of strings")
    try:
        return PatientParameters.from_dict(patient)
    except (TypeError, ValueError) as e:
        raise InvalidPatientError("patient", f"Invalid patient parameters: {e}") from e


@api_bp.route("/dose", methods=["POST"])
def api_dose():
    """Calculate a dose.

    Body: {"patient": {...}, "drug": "amoxicillin", "procedure": "..."}
    """
    data = request.get_json(silent=True) or {}
    drug = data.get("drug")
    if not drug:
        return api_error("drug is required", 400)

    try:
        patient = _patient(data)
        result = _services().dose_calculator.calculate_dose(patient, drug, data.get("procedure") or "")
        return api_success(data=result.to_dict())
    except InvalidPatientError as e:
        return api_error(e, 400)
    except NotFoundError as e:
        return api_error(e, 404)
    except Exception as e:
        logger.error(f"API dose error: {e}", exc_info=True)
        return api_error(str(e), 500)


@api_bp.route("/interactions", methods=["POST"])
def api_interactions():
    """Check interactions.

    Body: {"drugs": ["ibuprofen", "naproxen"], "patient": {...}}
    """
    data = request.get_json(silent=True) or {}
    drug_ids = data.get("drugs")
    if not isinstance(drug_ids, list):
        return api_error("drugs must be a list of drug ids", 400)

    try:
        patient = _patient(data) if data.get("patient") is not None else None
        result = _services().interaction_checker.check_interactions(drug_ids, patient)
        return api_success(data=result.to_dict())
    except InvalidPatientError as e:
        return api_error(e, 400)
    except Exception as e:
        logger.error(f"API interactions error: {e}", exc_info=True)
        return api_error(str(e), 500)


@api_bp.route("/validate/workflow", methods=["POST"])
def api_validate_workflow():
    """Validate a patient with an optional drug, procedure and material.

    Body: {"patient": {...}, "drug": id, "procedure": id, "material": id}
    """
    data = request.get_json(silent=True) or {}
    services = _services()

    try:
        patient = _patient(data)
        records = {}
        for key, finder in (
            ("drug", services.drugs.get_by_id),
            ("procedure", services.procedures.get_by_id),
            ("material", services.materials.get_by_id),
        ):
            if data.get(key):
                records[key] = finder(data[key])
                if records[key] is None:
                    raise NotFoundError(key, data[key])

        result = services.validator.validate_medical_workflow(patient, **records)
        return api_success(data=result.to_dict())
    except InvalidPatientError as e:
        return api_error(e, 400)
    except NotFoundError as e:
        return api_error(e, 404)
    except Exception as e:
        logger.error(f"API workflow validation error: {e}", exc_info=True)
        return api_error(str(e), 500)


@api_bp.route("/sync/status")
def api_sync_status():
    sync = _services().sync
    try:
        status = sync.get_status().to_dict()
        status["summary"] = sync.quality_summary()
        status["freshness"] = sync.data_freshness()
        return api_success(data=status)
    except Exception as e:
        logger.error(f"API sync status error: {e}", exc_info=True)
        return api_error(str(e), 500)


@api_bp.route("/sync/refresh", methods=["POST"])
def api_sync_refresh():
    try:
        status = _services().sync.force_refresh()
        return api_success(data=status.to_dict(), message="Reference data refreshed")
    except Exception as e:
        logger.error(f"API sync refresh error: {e}", exc_info=True)
        return api_error(str(e), 500)


@api_bp.route("/drugs")
def api_drugs():
    """Search drugs by name, class or indication (``?q=``); all drugs without a query."""
    drugs = _services().drugs
    try:
        query = request.args.get("q", "").strip()
        results = drugs.search(query) if query else drugs.records
        return api_success(data=[d.to_dict() for d in results])
    except Exception as e:
        logger.error(f"API drug search error: {e}", exc_info=True)
        return api_error(str(e), 500)


@api_bp.route("/procedures/<procedure_id>/related")
def api_related_procedures(procedure_id):
    procedures = _services().procedures
    try:
        if procedures.get_by_id(procedure_id) is None:
            return api_error(NotFoundError("procedure", procedure_id), 404)
        related = procedures.get_related(procedure_id)
        return api_success(data=[p.to_dict() for p in related])
    except Exception as e:
        logger.error(f"API related procedures error: {e}", exc_info=True)
        return api_error(str(e), 500)


@api_bp.route("/materials/compare", methods=["POST"])
def api_compare_materials():
    """Compare 2-4 materials.

    Body: {"materials": ["nanohybrid-composite", "dental-amalgam"]}
    """
    data = request.get_json(silent=True) or {}
    material_ids = data.get("materials")
    if not isinstance(material_ids, list):
        return api_error("materials must be a list of material ids", 400)

    try:
        comparison = _services().materials.compare(material_ids)
        return api_success(data=comparison.to_dict())
    except ComparisonError as e:
        return api_error(e, 400)
    except Exception as e:
        logger.error(f"API material comparison error: {e}", exc_info=True)
        return api_error(str(e), 500)
