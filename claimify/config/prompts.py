"""LLM prompt templates for pipeline stages.

User prompts are plain ``str.format`` templates; the rendered text is passed
to the generator as a prompt variable, so JSON braces inside them are never
interpreted as template fields.
"""

# Common instruction to suppress thinking and ensure JSON-only output
JSON_ONLY_INSTRUCTION = """
CRITICAL: You MUST respond with ONLY a valid JSON object.
- Do NOT include any thinking, reasoning, or explanation outside the JSON.
- Do NOT use markdown code blocks.
- Start your response directly with the opening brace
- No text before or after the JSON."""

_FACT_CHECKER_PREAMBLE = """You are an assistant to a fact-checker. You will be given a question, which was asked about a source text (it may be referred to by other names, e.g., a dataset). You will also be given an excerpt from a response to the question. If it contains "[...]", you are NOT seeing all sentences in the response. You will also be given a particular sentence of interest from the response."""

# =============================================================================
# Selection
# =============================================================================

SELECTION_SYSTEM_PROMPT = _FACT_CHECKER_PREAMBLE + """

Your task is to determine whether the sentence contains at least one specific and verifiable proposition, and if so, to return a complete sentence that only contains verifiable information.

RULES:
1. A sentence about a lack of information (e.g., "the dataset does not mention X") does NOT contain a specific and verifiable proposition.
2. It does NOT matter whether the proposition is true or false.
3. It does NOT matter whether the proposition is relevant to the question.
4. It does NOT matter whether the proposition contains ambiguous terms; assume the fact-checker can resolve them.
5. Ignore citations when deciding.
6. Consider the preceding and following sentences: an introduction to the following sentences or a conclusion summarising the preceding ones does NOT contain a specific and verifiable proposition.
7. Opinions, interpretations, speculation and broad generic statements are not verifiable.

EXAMPLES OF REWRITES:
- "The partnership between Company X and Company Y illustrates the power of innovation" -> "There is a partnership between Company X and Company Y"
- "John, the CEO of Company X, is a notable example of effective leadership" -> "John is the CEO of Company X"
- "Jane emphasizes the importance of collaboration and perseverance" -> remains unchanged

OUTPUT FIELDS:
- sentence: the sentence of interest exactly as given
- final_submission: "Contains a specific and verifiable proposition" or "Does NOT contain a specific and verifiable proposition"
- sentence_with_only_verifiable_information: the changed sentence, or "remains unchanged" if no changes are needed, or "None" if the sentence does NOT contain a specific and verifiable proposition
"""

SELECTION_USER_PROMPT = """Question:
{question}

Excerpt:
{excerpt}

Sentence:
{sentence}"""

# =============================================================================
# Disambiguation
# =============================================================================

DISAMBIGUATION_SYSTEM_PROMPT = _FACT_CHECKER_PREAMBLE + """ The text before and after this sentence is referred to as "the context".

Your task is to "decontextualize" the sentence, which means:
1. Determine whether it is possible to resolve partial names and undefined acronyms or abbreviations using only the question and the context; if so, state the full name.
2. Determine whether it is possible to resolve referential ambiguity (unclear pronouns or references) and structural ambiguity (multiple possible grammatical readings) using only the question and the context.

RULES:
- Only use the question and the context. NEVER rely on outside knowledge.
- Ambiguity counts as resolvable only if a group of readers would likely agree on the correct interpretation.
- Do not add information that is not needed to resolve an ambiguity.
- If the ambiguity cannot be resolved, set can_be_disambiguated to false and decontextualized_sentence to "Cannot be decontextualized".

OUTPUT FIELDS:
- incomplete_names_analysis: analysis of partial names, acronyms and abbreviations
- linguistic_ambiguity_analysis: analysis of referential and structural ambiguity
- can_be_disambiguated: true or false
- changes_needed: the list of changes needed to decontextualize the sentence
- decontextualized_sentence: the decontextualized sentence, or "Cannot be decontextualized"
"""

DISAMBIGUATION_USER_PROMPT = SELECTION_USER_PROMPT

# =============================================================================
# Decomposition
# =============================================================================

DECOMPOSITION_SYSTEM_PROMPT = _FACT_CHECKER_PREAMBLE + """

Your task is to identify all specific and verifiable propositions in the sentence and ensure that each proposition is decontextualized. A proposition is decontextualized when it is fully self-contained and can be understood without the question, the excerpt or the other propositions.

RULES:
1. Each proposition must be a minimal, specific, verifiable statement entailed by the sentence.
2. Statements and Actions Rule: if the sentence reports that an entity said, found, highlighted or did something, keep the attribution ("X says Y" must not become "Y"). Drop the attribution only when the source is undefined or is the responder itself.
3. Ignore opinions, speculation and generic statements; a sentence may yield no propositions at all.
4. For propositions_with_context, insert essential clarifications in [square brackets] and end each one with " - true or false?".
5. specific_verifiable_propositions and propositions_with_context must have the same length and order.

OUTPUT FIELDS:
- sentence: the sentence being decomposed
- referential_terms_analysis: which terms need clarification and how
- max_clarified_sentence: the sentence with discrete units of information and clarified referents
- proposition_range: the possible number of propositions, e.g. "3 - 4"
- specific_verifiable_propositions: list of bare propositions
- propositions_with_context: list of the same propositions with essential context
"""

DECOMPOSITION_USER_PROMPT = SELECTION_USER_PROMPT

# =============================================================================
# Entailment evaluation
# =============================================================================

ENTAILMENT_SYSTEM_PROMPT = """You will be given a question, an excerpt from the response to the question, a sentence of interest from the excerpt (referred to as S), and a claim (referred to as C) extracted from S.

Your task is to determine whether S, interpreted in the context of the question and the excerpt, entails every element of C.

RULES:
1. Break C into its elements and check each element against S.
2. Statements and Actions Rule: if S says an entity said, found or did something, S does not entail the bare content without the attribution. Exceptions: attribution to an undefined source, or to the responder itself, is treated as a direct statement.
3. If the context of S entails C but S itself does not, still conclude that S entails C.

OUTPUT FIELDS:
- sentence_s: S exactly as written
- context_description: how S would be interpreted in context
- claim_c: C exactly as written
- claim_interpretation: how a reader would interpret C
- elements_of_c: list of the elements of C
- statements_and_actions_rule_applies: true or false
- statements_and_actions_rule_reasoning: why the rule applies or an exception holds
- element_analysis: step-by-step reasoning for each element of C
- final_conclusion: "S entails all elements of C" or "S does not entail all elements of C"
"""

ENTAILMENT_USER_PROMPT = """Question:
{question}

Excerpt from response:
{excerpt}

Sentence of interest:
{sentence}

Claim:
{claim}

REMEMBER: if the context of S entails C, but S itself does not, you should still conclude that S entails C."""

# =============================================================================
# Element extraction
# =============================================================================

ELEMENT_EXTRACTION_SYSTEM_PROMPT = """You will be given a question, an excerpt from the response to the question, and a sentence of interest from the excerpt (referred to as S).

Your task is to break S into its most granular elements. An element is a piece of information finer than a proposition: every entity, attribute, relation, quantity, time and qualifier is its own element.

STEPS:
1. Decide whether clarifications are needed to understand S in its context, and restate S with those clarifications.
2. Decide whether the Statements and Actions Rule applies (S reports what an entity said or did).
3. List every element of the restated sentence and classify its verifiability as exactly one of:
   - "contains verifiable information"
   - "does not contain verifiable information"
   - "it's a generic statement, so it does not contain verifiable information"

OUTPUT FIELDS:
- original_sentence, clarifications_needed, restated_sentence
- statements_and_actions_rule_applies, statements_and_actions_rule_explanation
- elements: list of objects with "element" and "verifiability"
"""

ELEMENT_EXTRACTION_USER_PROMPT = """Question:
{question}

Excerpt from response:
{excerpt}

Sentence of interest:
{sentence}"""

# =============================================================================
# Element coverage
# =============================================================================

COVERAGE_SYSTEM_PROMPT = """You will be given a question and an excerpt from the response to the question. You will also be given a numbered list of claims extracted from the excerpt (referred to as C) and a numbered list of elements (referred to as E), each tagged with its verifiability.

Your task is to decide, for each element, whether it is covered by C.

COVERAGE STATUS (use exactly one):
- "fully covered by C": a verifiable element that C explicitly states or strongly implies
- "partially covered by C": a verifiable element that C only expresses in part
- "not covered by C": a verifiable element absent from C
- "not verifiable - correctly not covered by C": a non-verifiable element absent from C
- "not verifiable - incorrectly covered by C": a non-verifiable element that C nevertheless asserts

RULES:
1. Coverage requires exact-or-stronger specificity. If C is more specific than an element, the element counts as covered only when the question and the excerpt justify the added specificity.
2. Give a short reasoning for each element.
3. Count true positives (verifiable and covered), false negatives (verifiable, not or partially covered), false positives (not verifiable but covered) and true negatives (not verifiable and not covered).

OUTPUT FIELDS:
- element_coverage_results: list of objects with "element", "coverage_status", "reasoning"
- overall_summary: summary of the evaluation
- metrics: object with "true_positives", "false_negatives", "false_positives", "true_negatives"
"""

COVERAGE_USER_PROMPT = """Question (context for E):
{question}

Excerpt from response (context for E):
{excerpt}

Claims (C):
{claims}

Elements (E):
{elements}"""

# =============================================================================
# Baseline single-turn extraction
# =============================================================================

BASELINE_SYSTEM_PROMPT = """You are an expert fact-checking assistant. Your task is to extract the smallest possible verifiable factual claims from a response to a question.

For each response:
1. Identify all factual statements that can be independently verified.
2. Break complex sentences into their most atomic verifiable components.
3. Remove subjective opinions, rhetorical questions and unverifiable statements.
4. Make each claim fully decontextualized, adding essential context in [square brackets] only when needed.
5. Format each claim as "<claim> - true or false?".

Ignore citation markers and conversational filler. Each claim should test ONE specific fact only.

OUTPUT FIELDS:
- extracted_claims: list of claims
"""

BASELINE_USER_PROMPT = """Question: {question}

Response: {response}

Extract all verifiable factual claims from this response."""
