"""Interface messages for the console front end."""

TRANSLATIONS = {
    "en": {
        "header": "=" * 60,
        "title": "          PROCTORED EXAM",
        "prompt_language": "Choose language / Choisissez la langue [en/fr]: ",
        "invalid_language": "Please type 'en' or 'fr'.",

        # Entry flow
        "join_heading": "Join an exam",
        "ask_code": "Exam code: ",
        "ask_first_name": "First name: ",
        "ask_surname": "Surname: ",
        "ask_grade": "Grade: ",
        "join_success": "✓ Joined as {name}",
        "join_error": "Error: {error}",
        "bank_loading": "Loading exam bank...",
        "bank_success": "✓ Exam bank loaded",
        "bank_error": "Error: Failed to load the exam bank.\nDetails: {error}",
        "ask_enc_pass": "Enter the decryption key or password for '{bank}': ",
        "enc_error": "Error: No key provided.",
        "enc_exit": "Exiting.",
        "config_default": "Configuration loaded from {src}",
        "config_error": "Error in configuration: {error}",
        "init_error": "Could not resume the exam: {error}",
        "no_questions": "No questions available for this exam yet.",

        # Screens
        "loading": "Loading...",
        "waiting_title": "WAITING ROOM",
        "waiting_body": "Hello {name}. Please wait for your teacher to start the exam.",
        "waiting_code": "Exam code: {code}",
        "active_progress": "Q: {position} / {total}",
        "active_time": "Time left: {remaining}",
        "active_selected": "Selected: {letter}",
        "active_hint": "Use 'select <letter>' then 'submit'.",
        "detained_title": "LOCKED OUT",
        "detained_body": "You left the exam window. Wait for the countdown or solve problems to reduce it.",
        "detained_countdown": "Time remaining: {countdown}",
        "detained_challenge": "Solve: {problem} = ?",
        "detained_hint": "Use 'solve <answer>'. Each correct answer removes {seconds} seconds.",
        "finished_title": "EXAM COMPLETED",
        "finished_body": "Your answers have been submitted. You may close this window.",
        "timed_out_title": "TIME IS UP",
        "timed_out_body": "The exam time has finished. Your answers so far have been recorded.",
        "score_line": "Score: {score}",

        # Commands
        "cmd_help_text": "Type 'help' for a list of commands.",
        "cmd_help": (
            "Commands:\n"
            "  select <letter>   Select an option for the current question\n"
            "  submit            Submit the selected option\n"
            "  solve <answer>    Answer the lockout math problem\n"
            "  hide | show       Simulate hiding/showing the exam page\n"
            "  blur              Simulate leaving the exam window\n"
            "  time              Show remaining exam time\n"
            "  status            Show progress and score\n"
            "  leave             Leave the exam on this device\n"
            "  teacher start <minutes> | limit <minutes> | block [minutes]\n"
            "          | forgive | goto <index>\n"
            "  help              Show this message"
        ),
        "cmd_select_usage": "Usage: select <letter>",
        "cmd_solve_usage": "Usage: solve <answer>",
        "cmd_teacher_usage": "Usage: teacher start|limit|block|forgive|goto ...",
        "cmd_select_ok": "Selected {letter}: {option}",
        "cmd_select_error": "{error}",
        "no_option": "YOU MUST SELECT AN ANSWER!",
        "cmd_submit_ok": "✓ Answer submitted",
        "cmd_submit_skipped": "Already answered, moving on",
        "cmd_submit_failed": "Moving on",
        "cmd_submit_ignored": "Nothing to submit right now",
        "cmd_solve_ok": "✓ Correct! Lockout reduced.",
        "cmd_solve_wrong": "✗ Incorrect. Try the new problem.",
        "cmd_time": "Time remaining: {remaining}",
        "cmd_status": "Student: {name} | Status: {status} | Answered: {answered}/{total} | Score: {score}",
        "cmd_leave": "You have left the exam on this device.",
        "cmd_unknown": "Unknown command: '{command}'. Type 'help' for a list of commands.",
        "cmd_interrupt": "\nUse 'leave' to leave the exam.",
        "cmd_error": "An unexpected error occurred: {error}",
    },
    "fr": {
        "header": "=" * 60,
        "title": "          EXAMEN SURVEILLÉ",
        "prompt_language": "Choose language / Choisissez la langue [en/fr]: ",
        "invalid_language": "Veuillez taper 'en' ou 'fr'.",

        "join_heading": "Rejoindre un examen",
        "ask_code": "Code de l'examen : ",
        "ask_first_name": "Prénom : ",
        "ask_surname": "Nom : ",
        "ask_grade": "Classe : ",
        "join_success": "✓ Inscrit en tant que {name}",
        "join_error": "Erreur : {error}",
        "bank_loading": "Chargement de la banque d'examen...",
        "bank_success": "✓ Banque d'examen chargée",
        "bank_error": "Erreur : impossible de charger la banque d'examen.\nDétails : {error}",
        "ask_enc_pass": "Entrez la clé ou le mot de passe pour '{bank}' : ",
        "enc_error": "Erreur : aucune clé fournie.",
        "enc_exit": "Fermeture.",
        "config_default": "Configuration chargée depuis {src}",
        "config_error": "Erreur de configuration : {error}",
        "init_error": "Impossible de reprendre l'examen : {error}",
        "no_questions": "Aucune question disponible pour cet examen pour le moment.",

        "loading": "Chargement...",
        "waiting_title": "SALLE D'ATTENTE",
        "waiting_body": "Bonjour {name}. Veuillez attendre que votre enseignant lance l'examen.",
        "waiting_code": "Code de l'examen : {code}",
        "active_progress": "Q : {position} / {total}",
        "active_time": "Temps restant : {remaining}",
        "active_selected": "Sélection : {letter}",
        "active_hint": "Utilisez 'select <lettre>' puis 'submit'.",
        "detained_title": "VERROUILLÉ",
        "detained_body": "Vous avez quitté la fenêtre de l'examen. Attendez la fin du compte à rebours ou résolvez des calculs pour le réduire.",
        "detained_countdown": "Temps restant : {countdown}",
        "detained_challenge": "Calculez : {problem} = ?",
        "detained_hint": "Utilisez 'solve <réponse>'. Chaque bonne réponse retire {seconds} secondes.",
        "finished_title": "EXAMEN TERMINÉ",
        "finished_body": "Vos réponses ont été envoyées. Vous pouvez fermer cette fenêtre.",
        "timed_out_title": "TEMPS ÉCOULÉ",
        "timed_out_body": "Le temps de l'examen est terminé. Vos réponses ont été enregistrées.",
        "score_line": "Score : {score}",

        "cmd_help_text": "Tapez 'help' pour la liste des commandes.",
        "cmd_help": (
            "Commandes :\n"
            "  select <lettre>   Choisir une option pour la question actuelle\n"
            "  submit            Envoyer l'option choisie\n"
            "  solve <réponse>   Répondre au calcul de verrouillage\n"
            "  hide | show       Simuler masquer/afficher la page de l'examen\n"
            "  blur              Simuler la sortie de la fenêtre de l'examen\n"
            "  time              Afficher le temps restant\n"
            "  status            Afficher la progression et le score\n"
            "  leave             Quitter l'examen sur cet appareil\n"
            "  teacher start <minutes> | limit <minutes> | block [minutes]\n"
            "          | forgive | goto <index>\n"
            "  help              Afficher ce message"
        ),
        "cmd_select_usage": "Utilisation : select <lettre>",
        "cmd_solve_usage": "Utilisation : solve <réponse>",
        "cmd_teacher_usage": "Utilisation : teacher start|limit|block|forgive|goto ...",
        "cmd_select_ok": "Sélection {letter} : {option}",
        "cmd_select_error": "{error}",
        "no_option": "VOUS DEVEZ CHOISIR UNE RÉPONSE !",
        "cmd_submit_ok": "✓ Réponse envoyée",
        "cmd_submit_skipped": "Déjà répondu, question suivante",
        "cmd_submit_failed": "Question suivante",
        "cmd_submit_ignored": "Rien à envoyer pour le moment",
        "cmd_solve_ok": "✓ Correct ! Verrouillage réduit.",
        "cmd_solve_wrong": "✗ Incorrect. Essayez le nouveau calcul.",
        "cmd_time": "Temps restant : {remaining}",
        "cmd_status": "Élève : {name} | Statut : {status} | Répondu : {answered}/{total} | Score : {score}",
        "cmd_leave": "Vous avez quitté l'examen sur cet appareil.",
        "cmd_unknown": "Commande inconnue : '{command}'. Tapez 'help' pour la liste des commandes.",
        "cmd_interrupt": "\nUtilisez 'leave' pour quitter l'examen.",
        "cmd_error": "Une erreur inattendue s'est produite : {error}",
    },
}
