from config import DEFAULT_STATS_DAYS
from services import conditions, symptoms, treatments

RECENT_LIMIT = 5


def get_dashboard_stats(user_id: int) -> dict:
    """One-call summary for the signed-in user's home screen."""
    symptom_stats = symptoms.get_symptom_stats(user_id, DEFAULT_STATS_DAYS)
    treatment_stats = treatments.get_treatment_stats(user_id)
    condition_stats = conditions.get_condition_stats(user_id)

    current = [ut for ut in treatments.get_user_treatments(user_id) if not ut["end_date"]]
    return {
        "health_metrics": {
            "symptoms_today": symptom_stats["today_count"],
            "active_treatments": treatment_stats["active_treatments"],
            "treatment_effectiveness": treatment_stats["average_effectiveness"],
        },
        "recent_symptoms": [
            {
                "id": log["id"],
                "name": log["symptom"]["name"],
                "severity": log["severity"],
                "logged_at": log["logged_at"],
            }
            for log in symptoms.get_user_symptom_logs(user_id, RECENT_LIMIT)
        ],
        "current_treatments": [
            {
                "id": ut["id"],
                "name": ut["treatment"]["name"],
                "type": ut["treatment"]["type"],
                "effectiveness": ut["effectiveness_rating"],
                "dosage": ut["dosage"],
                "frequency": ut["frequency"],
            }
            for ut in current[:RECENT_LIMIT]
        ],
        "stats": {
            "symptom_stats": symptom_stats,
            "treatment_stats": treatment_stats,
            "condition_stats": condition_stats,
        },
    }
