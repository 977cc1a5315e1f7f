# Memory save path
#
#   caller --save_context(inputs, outputs)--> ToolAwareMemory
#              |  steps = outputs["intermediate_steps"]
#              |  no tool steps -> outputs passed through as-is
#              |  else outputs copy with outputs[output_key] =
#              |       "tool call: name(args) => observation" ... + joiner + answer
#              v
#         wrapped memory .save_context / .asave_context
