"""
Automated demo evaluation for a laid-off Globex employee on the Alpha
restructuring project.

Walks the profile and assessment forms through the Flask API, answering
questions as they become applicable, then prints completion and the
recommended tasks and tips.

Usage:
    python3 web_app.py            # in another terminal
    python3 scripts/run_demo_evaluation.py
"""

import sys

import requests

BASE = "http://localhost:5001"
COMPANY = "Globex Corporation"
PROJECT = "proj-alpha"

# ── Answers keyed by question ID ──
PROFILE_ANSWERS = {
    "birthYear": "1968",
    "state": "California",
    "hasDependents": "Yes",
    "dependentCount": "2",
}

ASSESSMENT_ANSWERS = {
    "workStatus": "Laid off",
    "startDate": "2016-04-01",
    "finalDate": "2026-11-30",
    "notificationDate": "2026-12-31",
    "benefits": ["Severance", "COBRA"],
    "benefitsDetails": "Twelve weeks of pay and three months of COBRA premiums.",
    "dependentCoverage": "Unsure",
    "custom-laptop": "Yes",
    "custom-badge": "No",
}


def fill_form(form_type, answer_bank, cross_form_answers):
    """Answer applicable questions one at a time until nothing new appears."""
    answers = {}
    while True:
        r = requests.post(f"{BASE}/api/applicable", json={
            "company": COMPANY,
            "projectId": PROJECT,
            "formType": form_type,
            "answers": answers,
            "crossFormAnswers": cross_form_answers,
        }, timeout=10)
        r.raise_for_status()
        pending = [qid for qid in r.json()["questionIds"]
                   if qid not in answers and qid in answer_bank]
        if not pending:
            return answers
        qid = pending[0]
        answers[qid] = answer_bank[qid]
        print(f"    {qid}: {answers[qid]}")


def show_completion(form_type, answers, cross_form_answers):
    r = requests.post(f"{BASE}/api/completion", json={
        "company": COMPANY,
        "projectId": PROJECT,
        "formType": form_type,
        "answers": answers,
        "crossFormAnswers": cross_form_answers,
    }, timeout=10)
    r.raise_for_status()
    stats = r.json()
    pct = int(stats["percentage"])
    bar = "=" * (pct // 5) + "-" * (20 - pct // 5)
    print(f"  [{bar}] {pct:3d}%  {form_type}")
    for qid in stats["incompleteQuestions"]:
        print(f"    still open: {qid}")


def main():
    print("\n  Starting automated demo evaluation...")
    print(f"  Server: {BASE}\n")

    try:
        r = requests.get(f"{BASE}/api/health", timeout=10)
        r.raise_for_status()
    except requests.ConnectionError:
        print("  Could not connect to server. Start it first:")
        print("    python3 web_app.py\n")
        sys.exit(1)
    print(f"  Snapshot: {r.json()['source']}\n")

    print("  Profile:")
    profile = fill_form("profile", PROFILE_ANSWERS, {})
    print("  Assessment:")
    assessment = fill_form("assessment", ASSESSMENT_ANSWERS, profile)
    print()

    show_completion("profile", profile, assessment)
    show_completion("assessment", assessment, profile)

    r = requests.post(f"{BASE}/api/recommendations", json={
        "company": COMPANY,
        "projectId": PROJECT,
        "profile": profile,
        "assessment": assessment,
    }, timeout=10)
    r.raise_for_status()
    recs = r.json()

    print(f"\n  Tasks ({len(recs['tasks'])}):")
    for task in recs["tasks"]:
        marker = "*" if task["isCompanySpecific"] else " "
        print(f"   {marker} {task['task']}  ({task['timeline']})")
    print(f"\n  Tips ({len(recs['tips'])}):")
    for tip in recs["tips"]:
        print(f"     [{tip['priority'] or '-'}] {tip['text']}")
    print()


if __name__ == "__main__":
    main()
