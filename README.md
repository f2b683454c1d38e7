# sonicbench

Audio processing modules that run one sample at a time:

- **Rich** (`sonicbench.rich`): an attack/decay envelope generator with stepped,
  ascending or descending accents, selectable curve shapes and two retrigger
  strategies.
- **Resonators** (`sonicbench.resonators`): a bank of four tuned feedback-delay
  resonators with per-voice pitch and gain, shared decay and tone colour, and a
  dry/wet mix.
- **Loudness meter** (`sonicbench.loudness_meter`, `sonicbench.ebur128`): an
  EBU R128 meter reporting momentary, short-term and integrated loudness,
  loudness range, true peak, PSR and PLR.
- **Readouts** (`sonicbench.display`, `sonicbench.compact`): turn meter values
  into display text, warning flags and bar geometry.

## Installation

```
pip install sonicbench
```

With the test dependencies:

```
pip install "sonicbench[test]"
```

## Usage

### Measuring loudness

```python
import math
from sonicbench.loudness_meter import LoudnessMeter, ProcessingMode

meter = LoudnessMeter()
meter.set_sample_rate(48000)
meter.processing_mode = ProcessingMode.TRUE_AUTO

for n in range(48000 * 5):
    voltage = 5.0 * math.sin(2 * math.pi * 1000 * n / 48000)
    overshoot = meter.process(voltage, voltage, 0.0, 0.0)

print(meter.integrated_lufs, meter.true_peak_max, meter.loudness_range)
```

`process(left, right, reset_button, reset_voltage)` takes voltages in the
±10 V range, scaled to ±1.0 full scale; pass `None` for an input that is not
connected. A rising edge on either reset value restarts the measurement, as
does `reset()`. The return value is the overshoot voltage: momentary loudness
above the target, scaled to ±10 V. Readings are refreshed once every 2048
frames.

`ProcessingMode` chooses automatic (mono or stereo by connected inputs),
forced-mono (inputs mixed down) or forced-stereo (a single input duplicated)
analysis. `TargetQuantity(meter)` sets the target loudness between -36 and
0 LUFS, rounded up to a tenth.

Settings are saved and restored with `to_dict()` and `from_dict()`.

### Lower-level loudness analysis

`sonicbench.ebur128.LoudnessState(channels, sample_rate, mode)` accepts frames
through `add_frames()`, either as an `(n, channels)` array or a flat
interleaved sequence, and reports `loudness_momentary()`,
`loudness_shortterm()`, `loudness_global()`, `loudness_range()` (a tuple of
range, low and high) and `prev_true_peak(channel)`. The `Mode` flags select
which measurements are kept; asking for one that was not enabled raises
`LoudnessError`.

### The envelope

```python
from sonicbench.rich import Rich, RichInputs

env = Rich()
sample_time = 1 / 48000
for frame in range(4800):
    trigger = 10.0 if frame < 10 else 0.0
    out = env.process(sample_time, frame, RichInputs(trigger=trigger, accent=trigger))
print(out.envelope, out.accent)
```

Knobs live in `env.params` (`RichParams`). Triggers take effect after the
trigger sync delay (5 samples per step of `trigger_sync_delay`), so a trigger
and an accent arriving close together count as one accented hit. Curve,
exponent and retrigger settings are attributes of `Rich` and are saved with
`to_dict()` / `from_dict()`.

### The resonators

```python
from sonicbench.resonators import Resonators, ResonatorInputs, ResonatorParams

bank = Resonators(ResonatorParams(pitch=[0.0, 7.0, 12.0, 19.0]), sample_rate=48000)
out = bank.process(ResonatorInputs(audio=1.0))
print(out.out, out.wet)
```

Polyphonic control inputs are tuples of channel voltages; an empty tuple means
the jack is unconnected. A polyphonic first pitch input tunes all four
resonators when their own pitch inputs are empty.

### Displaying values

```python
from sonicbench.display import format_value, value_readout, bar_geometry

format_value(-23.04)           # "-23.0"
format_value(float("-inf"))    # "-inf"
value_readout(-0.2, "TRUE PEAK MAX")   # text "-0.2", clipping=True
```

`bar_geometry()` lays out the momentary bar, its overshoot segment, the target
mark and the loudness-range bracket. `sonicbench.compact.compact_fields(meter)`
lists every meter value as a labelled row of the compact layout.

### Modules by name

```python
from sonicbench.registry import available_models, create_model

for info in available_models():
    print(info.slug)       # Rich, Resonators, LoudnessMeter, Loud

rich = create_model("Rich")
```

`create_model` raises `KeyError` for an unknown slug. "LoudnessMeter" and
"Loud" both build a `LoudnessMeter`.

### Building blocks

`sonicbench.primitives` holds `clamp`, `rescale`, `crossfade`,
`SchmittTrigger`, `BooleanTrigger`, `ClockDivider` and a first-order
`RCFilter`.

## What it does not do

There is no audio I/O, no command-line tool and no graphical panel: the
package processes the values you hand it, and the display modules compute what
a panel would show without drawing anything.